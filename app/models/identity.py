# app/models/identity.py

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy import JSON, CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.db.base_class import Base, utcnow


class OtpPurpose(str, Enum):
    SIGNUP = "signup"
    RECOVERY = "recovery"


class Identity(Base):
    """Login account. Every identity owns exactly one profile with the same id."""

    __tablename__ = "identities"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    user_metadata = Column(JSON, default=dict, nullable=False)
    email_confirmed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    profile = relationship(
        "Profile", back_populates="identity", uselist=False,
        cascade="all, delete-orphan", passive_deletes=True,
    )

    @property
    def is_confirmed(self) -> bool:
        return self.email_confirmed_at is not None


class OneTimeCode(Base):
    __tablename__ = "one_time_codes"
    __table_args__ = (
        CheckConstraint("purpose IN ('signup', 'recovery')", name="one_time_codes_purpose_check"),
    )

    id = Column(Integer, primary_key=True, index=True)
    identity_id = Column(String(36), ForeignKey("identities.id", ondelete="CASCADE"), index=True, nullable=False)
    purpose = Column(String(20), nullable=False)
    code_hash = Column(String(64), nullable=False)
    failed_attempts = Column(Integer, default=0, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    consumed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class RevokedToken(Base):
    __tablename__ = "revoked_tokens"

    jti = Column(String(64), primary_key=True)
    expires_at = Column(DateTime, nullable=False)


class UserRead(BaseModel):
    id: str
    email: str
    email_confirmed_at: Optional[datetime] = None
    user_metadata: Dict[str, Any] = {}
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SessionRead(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserRead
