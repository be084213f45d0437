from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from dotenv import load_dotenv

from config import settings
from errors import BackendUnavailable

# Load environment variables from .env file
load_dotenv()

# Create a Base class for declarative models
Base = declarative_base()


def create_db_engine(database_url: str) -> Engine:
    """
    Build the SQLAlchemy engine for a direct connection to the catalog database.
    SQLite URLs (tests, local development) share one in-process connection.
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(
        database_url,
        pool_size=10,  # The number of connections to keep open in the pool.
        max_overflow=20, # The maximum number of connections to allow in addition to pool_size.
        pool_recycle=3600, # Recycle connections after 1 hour to prevent timeout issues.
        pool_pre_ping=True # Check if the connection is alive before using it.
    )


engine: Optional[Engine] = create_db_engine(settings.database_url) if settings.database_url else None

# Create a SessionLocal class for creating new Session objects
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# --- Dependency for FastAPI ---
def get_db():
    """
    FastAPI dependency that provides a database session per request.
    """
    if engine is None:
        raise BackendUnavailable("DATABASE_URL is not configured")
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
