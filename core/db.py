from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from pydantic_settings import BaseSettings
from typing import Generator

class DatabaseSettings(BaseSettings):
    """Database configuration from environment"""
    database_url: str

    class Config:
        env_file = ".env"
        extra = "ignore"

# Initialize settings
db_settings = DatabaseSettings()


def _engine_options(database_url: str) -> dict:
    """Engine options per backend (SQLite needs cross-thread access for the API worker pool)"""
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_recycle": 300}


# Create SQLAlchemy engine
engine = create_engine(db_settings.database_url, **_engine_options(db_settings.database_url))

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()

def get_db() -> Generator[Session, None, None]:
    """Dependency to get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
