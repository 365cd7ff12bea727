"""Create the schema and an initial ADMIN user.

Usage:
    python -m userhub.seed
"""
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from userhub.auth.password import hash_password
from userhub.core import config
from userhub.core.logging_config import setup_logging
from userhub.database import Database
from userhub.models.user import ROLE_ADMIN, User

logger = logging.getLogger(__name__)


def seed_admin(database: Database, name: str, email: str, password: str) -> bool:
    """Insert the admin user unless the email is already taken.

    Returns True when a user was created.
    """
    database.create_schema()
    with database.session() as db:
        if db.query(User).filter(User.email == email).first() is not None:
            logger.info('User %s already exists, nothing to seed', email)
            return False
        db.add(User(name=name, email=email, password=hash_password(password), role=ROLE_ADMIN))
        db.commit()
    logger.info('Seeded admin user %s', email)
    return True


def main() -> None:
    setup_logging(config.LOG_LEVEL, config.LOG_FILE)
    database = Database(config.DATABASE_URL)
    try:
        seed_admin(database, config.SEED_ADMIN_NAME, config.SEED_ADMIN_EMAIL.strip().lower(), config.SEED_ADMIN_PASSWORD)
    except SQLAlchemyError:
        logger.exception('Seeding failed. Check DATABASE_URL.')
        sys.exit(1)
    finally:
        database.dispose()


if __name__ == "__main__":
    main()
