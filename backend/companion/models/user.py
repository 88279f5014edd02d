from datetime import datetime
from sqlalchemy import Boolean, Column, Integer, String, DateTime
from passlib.hash import bcrypt as bcrypt_hash
from companion.database import Base


class User(Base):
    """Remote identity that owns a set of daily entries."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(200), nullable=False)
    email = Column(String(200), unique=True, nullable=False, index=True)
    password_hash = Column(String(200), nullable=False)
    phone = Column(String(30), nullable=True)
    is_admin = Column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def identity(self) -> str:
        """Key used for daily_entries.user_id."""
        return str(self.id)

    def set_password(self, password: str):
        self.password_hash = bcrypt_hash.hash(password)

    def check_password(self, password: str) -> bool:
        return bcrypt_hash.verify(password, self.password_hash)
