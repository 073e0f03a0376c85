"""Runtime settings and logging setup for dashquery."""

import logging
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseSettings):
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    DB_PATH: str = "./data.duckdb"
    METRICS_PATH: Path = Path("./config/metrics.yaml")
    LOG_LEVEL: str = "INFO"
    # seconds a whole metrics request may take before in-flight queries are cancelled
    REQUEST_TIMEOUT: float = 30.0
    MAX_OPEN_CONNECTIONS: int = 25
    MAX_IDLE_CONNECTIONS: int = 5

    # read from the environment first, then a .env file
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


def configure_logging(level: str = "INFO") -> None:
    """Send log records to stderr in a single line format.

    force=True so calling this twice (cli then server) doesn't stack handlers.
    """
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, force=True)
