"""
Application settings loaded from environment variables.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "User Auth API"

    # ── Database ─────────────────────────────────────────────────────────
    database_url: str = "sqlite+aiosqlite:///./users.db"   # or postgresql+asyncpg://…
    create_tables: bool = True                              # create_all on startup

    # ── Security Secrets ──────────────────────────────────────────────────
    jwt_secret: str = "change-me-jwt-secret-key"       # HMAC secret for auth tokens
    jwt_algorithm: str = "HS256"
    jwt_ttl_minutes: int = 60
    revocation_backend: str = "database"                # "database" | "memory"

    # ── Password policy ──────────────────────────────────────────────────
    bcrypt_rounds: int = 12
    password_min_length: int = 12
    password_special_characters: str = "@$!%*#?&"

    # ── Server ───────────────────────────────────────────────────────────
    port: int = 8000
    host: str = "0.0.0.0"
    debug: bool = False
    cors_origins: list = ["*"]

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
    }


config = Settings()
