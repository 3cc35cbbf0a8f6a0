from sqlalchemy import Column, Integer, String

from ..database import Base


class User(Base):
    """SQLAlchemy model for registered accounts."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hash = Column(String(255), nullable=False)
    username = Column(String(64), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(32), default="user", nullable=False)
