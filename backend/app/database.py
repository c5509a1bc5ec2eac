from typing import Optional
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from pydantic_settings import BaseSettings


class DatabaseSettings(BaseSettings):
    # Use SUPABASE_DB_URL if available, fallback to DATABASE_URL for compatibility
    database_url: str = ""
    supabase_db_url: str = ""

    class Config:
        env_file = ".env"
        extra = "ignore"  # Ignore extra fields from .env file

    @property
    def db_url(self) -> str:
        """Get database URL, preferring SUPABASE_DB_URL."""
        url = self.supabase_db_url or self.database_url
        if not url:
            raise ValueError(
                "Either SUPABASE_DB_URL or DATABASE_URL must be set in environment variables"
            )
        return url


# Base class for models
Base = declarative_base()

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def get_engine() -> Engine:
    """Create the engine on first use so importing models needs no database."""
    global _engine
    if _engine is None:
        settings = DatabaseSettings()
        _engine = create_engine(
            settings.db_url,
            pool_pre_ping=True,
            pool_size=10,
            max_overflow=20
        )
    return _engine


def get_session_factory() -> sessionmaker:
    """Session factory bound to the application engine."""
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _session_factory

