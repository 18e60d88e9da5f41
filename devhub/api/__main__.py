"""Run the API server: ``python -m devhub.api``."""

import uvicorn

from devhub.config import get_settings
from devhub.logging_setup import setup_logging

settings = get_settings()
setup_logging(settings.log_level, settings.log_file or None)
uvicorn.run("devhub.api.main:app", host=settings.api_host, port=settings.api_port)
