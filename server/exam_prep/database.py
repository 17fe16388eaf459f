"""
Database connection and session management
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from exam_prep.config import settings


connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

# Create engine
engine = create_engine(settings.database_url, connect_args=connect_args, pool_pre_ping=True)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for declarative models
Base = declarative_base()


def get_db():
    """
    Database session dependency for FastAPI
    Yields a database session and ensures it's closed after use
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create all tables registered on Base."""
    # Import models so they register with Base.metadata
    import exam_prep.models  # noqa: F401
    Base.metadata.create_all(bind=engine)
