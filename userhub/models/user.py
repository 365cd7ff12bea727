"""User model definitions."""

from sqlalchemy import Column, Integer, String
from userhub.database import Base

ROLE_USER = "USER"
ROLE_ADMIN = "ADMIN"


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=True)
    password = Column(String, nullable=True)  # bcrypt hash
    role = Column(String, nullable=False, default=ROLE_USER)

    def to_public_dict(self) -> dict:
        data = {"id": self.id, "name": self.name, "email": self.email, "role": self.role}
        if self.email is None:
            del data["email"]
        return data
