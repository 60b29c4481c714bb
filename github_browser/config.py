"""Settings read from environment variables."""
import os
from dataclasses import dataclass
from typing import Mapping, Optional


@dataclass(frozen=True)
class Settings:
    """Runtime configuration.

    Entry points load ``.env`` (or ``env``) with python-dotenv before calling
    ``from_env`` so both sources behave the same.
    """
    github_token: Optional[str] = None
    github_api_url: str = "https://api.github.com"
    page_size: int = 20
    request_timeout: float = 30
    store_backend: str = "postgres"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"
    postgres_db: str = "github_browser"
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        env = os.environ if environ is None else environ
        store_backend = env.get("STORE_BACKEND", "postgres").lower()
        if store_backend not in ("postgres", "memory"):
            raise ValueError(f"STORE_BACKEND must be 'postgres' or 'memory', got {store_backend!r}")
        page_size = int(env.get("PAGE_SIZE", "20"))
        if not 1 <= page_size <= 100:
            raise ValueError(f"PAGE_SIZE must be between 1 and 100, got {page_size}")
        return cls(
            github_token=env.get("GITHUB_TOKEN") or None,
            github_api_url=env.get("GITHUB_API_URL", "https://api.github.com"),
            page_size=page_size,
            request_timeout=float(env.get("REQUEST_TIMEOUT", "30")),
            store_backend=store_backend,
            postgres_host=env.get("POSTGRES_HOST", "localhost"),
            postgres_port=env.get("POSTGRES_PORT", "5432"),
            postgres_db=env.get("POSTGRES_DB", "github_browser"),
            postgres_user=env.get("POSTGRES_USER", "postgres"),
            postgres_password=env.get("POSTGRES_PASSWORD", "postgres")
        )

    @property
    def connection_string(self) -> str:
        """Build PostgreSQL connection string."""
        return (
            f"host={self.postgres_host} port={self.postgres_port} dbname={self.postgres_db} "
            f"user={self.postgres_user} password={self.postgres_password}"
        )
