"""Application settings for qrep, loaded from the environment."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """qrep settings loaded from QREP_* environment variables or .env.

    Command-line options take their defaults from here.
    """

    # Capture
    dsn: str = ""
    capture_fraction: float = 0.1
    denylist_file: Path = Path.home() / ".qrep-query-blacklist"

    # Comparison
    deviation: float = 0.05
    min_count: int = 1000

    # Host loop
    report_dir: Path = Path("/tmp")
    hosts_file: Path = Path("dbhosts.yml")
    dsn_template: str = "mysql+pymysql://user:password@${HOST}:3306/"
    hosts_fraction: float = 0.2
    hosts_deviation: float = 0.02

    class Config:
        env_prefix = "QREP_"
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
