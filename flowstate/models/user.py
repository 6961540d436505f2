"""
User Model for FlowState.

Data Classification: SENSITIVE (email and name are personal data,
password is stored only as a salted PBKDF2 hash)
"""

from sqlalchemy import Column, DateTime, Index, String

from flowstate.models.base import Base, utcnow


class UserRecord(Base):
    """
    Registered user.

    Attributes:
        id: Primary key (UUID string)
        email: Login email, stored lower-cased
        name: Display name
        password_hash: Hex PBKDF2-HMAC-SHA256 digest
        password_salt: Hex per-user salt
        created_at: Registration timestamp
        last_login_at: Last successful login
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    email = Column(String(320), unique=True, nullable=False)
    name = Column(String(200), nullable=True)
    password_hash = Column(String(128), nullable=False)
    password_salt = Column(String(64), nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("idx_user_email", "email"),)

    def __repr__(self) -> str:
        return f"<UserRecord(id={self.id})>"


__all__ = ["UserRecord"]
