"""
SQLAlchemy ORM models for database tables
"""

from sqlalchemy import Column, String, DateTime, Boolean, Index, Uuid
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func
import uuid

from src.core.service.auth.models.challenge import LOGIN_SESSION_TOKEN_MAX_LENGTH
from src.infra.config.settings import NONCE_MAX_LENGTH

Base = declarative_base()


class UserModel(Base):
    """SQLAlchemy ORM model for users table"""

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    address = Column(String(42), nullable=False, unique=True)
    role = Column(String(20), default='user', nullable=False)
    is_address_verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(address='{self.address}', role='{self.role}', verified={self.is_address_verified})>"


class ChallengeModel(Base):
    """SQLAlchemy ORM model for login_challenges table"""

    __tablename__ = "login_challenges"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    login_session_token = Column(String(LOGIN_SESSION_TOKEN_MAX_LENGTH), nullable=False, unique=True)
    claimed_address = Column(String(42), nullable=False)
    nonce = Column(String(NONCE_MAX_LENGTH), nullable=False, unique=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index('idx_login_challenges_status', 'status'),
        Index('idx_login_challenges_expires', 'expires_at'),
    )

    def __repr__(self):
        return f"<LoginChallenge(token='{self.login_session_token}', address='{self.claimed_address}', status='{self.status}')>"
