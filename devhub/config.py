from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings

from devhub.errors import ConfigurationError
from devhub.pipeline_config import CorrelationStrategy, RecommendationMode


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    Components receive this object explicitly; business logic never reads
    the environment directly.
    """

    # API Keys
    anthropic_api_key: str = ""

    # LLM
    llm_model: str = "claude-sonnet-4-20250514"
    llm_max_tokens: int = 2048
    llm_timeout_seconds: float = 60.0

    # GitHub: optional, code review features are disabled if absent
    github_token: str = ""
    github_repo_owner: str = ""
    github_repo_name: str = ""
    github_api_url: str = "https://api.github.com"

    # Jira: optional, ticket features are disabled if absent
    jira_url: str = ""
    jira_email: str = ""
    jira_api_token: str = ""
    jira_project_key: str = ""
    # Tracker-specific IDs; override to match the Jira instance's scheme.
    jira_priority_ids: dict[str, str] = {"HIGH": "1", "MEDIUM": "3", "LOW": "4"}
    jira_default_priority_id: str = "3"
    jira_issue_type_ids: dict[str, str] = {"BUG": "10004", "STORY": "10001", "TASK": "10003"}
    jira_default_issue_type_id: str = "10003"

    # HTTP
    http_timeout_seconds: float = 30.0
    http_max_retries: int = 3
    ticket_rate_limit_seconds: float = 0.5
    link_rate_limit_seconds: float = 0.3

    # Pipeline
    correlation_strategy: CorrelationStrategy = CorrelationStrategy.KEYWORD
    correlation_min_strength: float = 0.15
    recommendation_mode: RecommendationMode = RecommendationMode.RULES
    structured_extraction: bool = False
    parallel_extraction: bool = False

    # App config
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    data_dir: str = "data"
    log_level: str = "INFO"
    log_file: str = ""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def llm_enabled(self) -> bool:
        return bool(self.anthropic_api_key)

    @property
    def github_enabled(self) -> bool:
        return bool(self.github_token and self.github_repo_owner and self.github_repo_name)

    @property
    def jira_enabled(self) -> bool:
        return bool(self.jira_url and self.jira_email and self.jira_api_token and self.jira_project_key)

    def require_llm(self) -> None:
        """Raise if the mandatory LLM configuration is missing.

        Raises:
            ConfigurationError: If ANTHROPIC_API_KEY is not set.
        """
        if not self.llm_enabled:
            raise ConfigurationError(
                "ANTHROPIC_API_KEY is required",
                details={"missing": ["ANTHROPIC_API_KEY"]},
            )

    def disabled_features(self) -> list[str]:
        """Return human-readable notes for each optional integration that is off."""
        notes: list[str] = []
        if not self.github_enabled:
            notes.append("GitHub integration disabled (set GITHUB_TOKEN, GITHUB_REPO_OWNER, GITHUB_REPO_NAME)")
        if not self.jira_enabled:
            notes.append("Jira integration disabled (set JIRA_URL, JIRA_EMAIL, JIRA_API_TOKEN, JIRA_PROJECT_KEY)")
        return notes


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]
