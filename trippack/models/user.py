"""User model."""

from sqlalchemy import Column, Integer, String

from trippack.database import Base
from trippack.models.mixins import TimestampMixin


class User(Base, TimestampMixin):
    """User model for authentication and trip ownership."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
