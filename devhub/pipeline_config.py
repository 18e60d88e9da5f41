"""Pipeline configuration: strategy enums and PipelineConfig dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from devhub.config import Settings


class CorrelationStrategy(str, Enum):
    """How entity pairs are scored by the cross-reference correlator."""

    FIXED = "fixed"
    KEYWORD = "keyword"


class RecommendationMode(str, Enum):
    """Source of predictive recommendations."""

    RULES = "rules"
    CATALOG = "catalog"


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable configuration for one analysis run.

    Defaults mirror the project's current behaviour (keyword correlation,
    rule-driven recommendations, sequential delimited-text extraction).
    """

    correlation_strategy: CorrelationStrategy = CorrelationStrategy.KEYWORD
    correlation_min_strength: float = 0.15
    recommendation_mode: RecommendationMode = RecommendationMode.RULES
    structured_extraction: bool = False
    parallel_extraction: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> PipelineConfig:
        """Build a PipelineConfig from a Settings instance."""
        return cls(
            correlation_strategy=CorrelationStrategy(settings.correlation_strategy),
            correlation_min_strength=settings.correlation_min_strength,
            recommendation_mode=RecommendationMode(settings.recommendation_mode),
            structured_extraction=settings.structured_extraction,
            parallel_extraction=settings.parallel_extraction,
        )
