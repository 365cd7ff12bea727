"""Registration and login against the ``users`` table."""

import logging

from sqlalchemy.orm import Session

from userhub.auth import jwt_handler
from userhub.auth.password import hash_password, verify_password
from userhub.errors import InvalidCredentialsError
from userhub.models.user import ROLE_USER, User

logger = logging.getLogger(__name__)


def register_user(db: Session, email: str, password: str, name: str) -> dict:
    """Store a new ``USER`` with a bcrypt-hashed password.

    Returns the public identity of the new user; the hash is never
    included. Database errors (for example a duplicate email) propagate
    to the caller after the session is rolled back.
    """
    user = User(email=email, password=hash_password(password), name=name, role=ROLE_USER)
    db.add(user)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(user)
    logger.info("Registered user %s (%s)", user.id, email)
    return user.to_public_dict()


def login_user(db: Session, email: str, password: str) -> str:
    """Return a signed access token for valid credentials.

    Unknown emails and wrong passwords raise the same
    ``InvalidCredentialsError`` so callers cannot tell them apart.
    """
    user = db.query(User).filter(User.email == email).first()
    if user is None or not verify_password(password, user.password):
        logger.info("Rejected login for %s", email)
        raise InvalidCredentialsError()

    logger.info("Login: user %s", user.id)
    return jwt_handler.create_access_token(user_id=user.id, role=user.role)
