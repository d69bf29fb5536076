#!/usr/bin/env python3
# backend/init_db.py
"""
Create all tables directly from the models (local development).

Production schemas are managed by the Alembic revisions in alembic/versions/.

This script can be run from any directory:
    python backend/init_db.py
    cd backend && python init_db.py
"""
import logging
import sys
from pathlib import Path

# Add the backend directory to Python path so 'app' package is importable
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))

from app.database import engine
from app.models import Base
from app.utils import setup_logging

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Create every table that does not exist yet."""
    Base.metadata.create_all(bind=engine)
    logger.info(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    setup_logging()
    init_db()
