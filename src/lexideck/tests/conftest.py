"""Test configuration."""
import os
from pathlib import Path
from typing import Generator

import pytest
from dotenv import load_dotenv

# Set test environment before any imports
os.environ["ENV"] = "test"

# Load test environment variables
test_env_path = Path(__file__).parents[3] / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from lexideck.config import ensure_directories
from lexideck.models.base import Base, SessionLocal, engine, init_db
from sqlalchemy.orm import Session


@pytest.fixture(autouse=True)
def setup_test_environment():
    """Set up test environment before each test."""
    ensure_directories()

    yield


@pytest.fixture
def setup_database():
    """Drop and recreate all tables."""
    init_db()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    yield

    engine.dispose()


@pytest.fixture
def db(setup_database) -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
