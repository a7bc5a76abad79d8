#!/usr/bin/env python3
"""
Database initialization script for the Kanban board API.

Usage:
    python init_db.py
"""

from sqlmodel import SQLModel
from database import engine
from settings import logger
# Import all models so their tables are registered on the metadata
from models.boards import Board, Bucket, Card, Label  # noqa: F401
from models.preferences import UserPreferences  # noqa: F401


def init_database():
    """Create all database tables."""
    logger.info("Creating database tables...")
    SQLModel.metadata.create_all(engine)
    logger.info("Database tables created successfully", extra={
        "tables": sorted(SQLModel.metadata.tables)
    })


if __name__ == "__main__":
    init_database()
