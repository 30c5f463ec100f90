#!/usr/bin/env python3
"""
Management commands for the Scholarship Portal API.

Usage:
    python manage.py init_db
    python manage.py check_db
    python manage.py reset_db
    python manage.py create_admin <username> <password>
    python manage.py seed_menus
"""

import sys
from sqlalchemy import inspect
from sqlmodel import SQLModel, select
from database import engine, get_session
from settings import logger
from apis.auth import hash_password
# Import all models to ensure tables are created
from models.auth import User, UserRole, Token, TokenUser
from models.menu import Menu, MenuItem, MenuLocation, MenuItemType, LinkTarget


def init_db():
    """Initialize database tables."""
    logger.info("Creating database tables...")
    SQLModel.metadata.create_all(engine)
    logger.info("Database tables created successfully")


def check_db():
    """Check database connection and tables."""
    try:
        tables = inspect(engine).get_table_names()
        logger.info(f"Database connected. Found {len(tables)} tables: {tables}")
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        sys.exit(1)


def reset_db():
    """Drop and recreate all database tables."""
    logger.warning("Dropping all database tables...")
    SQLModel.metadata.drop_all(engine)
    logger.info("Creating database tables...")
    SQLModel.metadata.create_all(engine)
    logger.info("Database reset successfully")


def create_admin(username: str, password: str):
    """Create an admin user."""
    try:
        with next(get_session()) as session:
            admin_user = User(
                username=username,
                hashed_password=hash_password(password),
                role=UserRole.ADMIN,
                is_active=True
            )

            session.add(admin_user)
            session.commit()
            session.refresh(admin_user)

            logger.info(f"Admin user '{username}' created successfully with ID: {admin_user.id}")
    except Exception as e:
        logger.error(f"Failed to create admin user: {e}")
        sys.exit(1)


def seed_menus():
    """Create a starter menu with a Home link for every location that has none."""
    with next(get_session()) as session:
        for location in MenuLocation:
            existing = session.exec(select(Menu).where(Menu.location == location)).first()
            if existing:
                continue
            menu = Menu(name=f"{location.value.capitalize()} menu", slug=f"{location.value}-menu", location=location)
            session.add(menu)
            session.commit()
            session.refresh(menu)

            home = MenuItem(menu_id=menu.id, title="Home", type=MenuItemType.LINK, order=0)
            home.apply_target(LinkTarget(url="/"))
            session.add(home)
            session.commit()
            logger.info("Seeded menu", extra={"menu_id": menu.id, "location": location.value})


def main():
    if len(sys.argv) < 2:
        print("Usage: python manage.py <command> [args]")
        print("Commands:")
        print("  init_db                        - Initialize database tables")
        print("  check_db                       - Check database connection")
        print("  reset_db                       - Drop and recreate all tables")
        print("  create_admin <username> <pass> - Create admin user")
        print("  seed_menus                     - Create a starter menu per location")
        sys.exit(1)

    command = sys.argv[1]

    if command == "init_db":
        init_db()
    elif command == "check_db":
        check_db()
    elif command == "reset_db":
        reset_db()
    elif command == "create_admin":
        if len(sys.argv) != 4:
            print("Usage: python manage.py create_admin <username> <password>")
            sys.exit(1)
        username = sys.argv[2]
        password = sys.argv[3]
        create_admin(username, password)
    elif command == "seed_menus":
        seed_menus()
    else:
        print(f"Unknown command: {command}")
        print("Run 'python manage.py' to see available commands")
        sys.exit(1)


if __name__ == "__main__":
    main()
