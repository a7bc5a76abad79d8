#!/usr/bin/env python3
"""
Management commands for the Kanban board API.

Usage:
    python manage.py init_db
    python manage.py check_db
    python manage.py reset_db
    python manage.py seed_demo <board title>
"""

import asyncio
import sys
from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, Session
from database import engine
from init_db import init_database
from settings import logger
from store.board_store import BoardStore
from store.demo import seed_demo_board
from store.errors import PersistenceError
from store.repository import SQLModelBoardRepository


def init_db():
    """Initialize database tables."""
    init_database()


def check_db():
    """Check database connection and tables."""
    try:
        tables = inspect(engine).get_table_names()
    except SQLAlchemyError as e:
        logger.error("Database connection failed", extra={"error": str(e)})
        sys.exit(1)

    missing = sorted(set(SQLModel.metadata.tables) - set(tables))
    logger.info("Database connected", extra={"tables": tables, "missing": missing})
    if missing:
        logger.warning("Run 'python manage.py init_db' to create the missing tables")


def reset_db():
    """Drop and recreate all database tables."""
    logger.warning("Dropping all database tables...")
    SQLModel.metadata.drop_all(engine)
    init_database()
    logger.info("Database reset successfully")


async def _seed_demo(title: str) -> None:
    with Session(engine) as session:
        store = BoardStore(SQLModelBoardRepository(session))
        board = await store.create_board(title)
        await store.load_board(board.id)
        created = await seed_demo_board(store)
        logger.info("Demo board created", extra={"board_id": board.id, "card_count": created})


def seed_demo(title: str):
    """Create a board filled with demo lists, labels and cards."""
    try:
        asyncio.run(_seed_demo(title))
    except PersistenceError as e:
        logger.error("Failed to seed demo board", extra={"error": str(e)})
        sys.exit(1)


def main():
    if len(sys.argv) < 2:
        print("Usage: python manage.py <command> [args]")
        print("Commands:")
        print("  init_db              - Initialize database tables")
        print("  check_db             - Check database connection")
        print("  reset_db             - Drop and recreate all tables")
        print("  seed_demo <title>    - Create a board with demo data")
        sys.exit(1)

    command = sys.argv[1]

    if command == "init_db":
        init_db()
    elif command == "check_db":
        check_db()
    elif command == "reset_db":
        reset_db()
    elif command == "seed_demo":
        if len(sys.argv) < 3:
            print("Usage: python manage.py seed_demo <board title>")
            sys.exit(1)
        seed_demo(" ".join(sys.argv[2:]))
    else:
        print(f"Unknown command: {command}")
        print("Run 'python manage.py' to see available commands")
        sys.exit(1)


if __name__ == "__main__":
    main()
