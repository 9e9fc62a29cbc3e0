# app/models/profile.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Column, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.base_class import Base, utcnow


class Profile(Base):
    __tablename__ = "profiles"
    __table_args__ = (UniqueConstraint("username", name="profiles_username_key"),)

    # same value as the owning identity's id
    id = Column(String(36), ForeignKey("identities.id", ondelete="CASCADE"), primary_key=True)
    username = Column(String(255), nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    avatar_url = Column(String(2048), nullable=True)
    bio = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    identity = relationship("Identity", back_populates="profile")
    posts = relationship("Post", back_populates="author", cascade="all, delete-orphan", passive_deletes=True)


class ProfileSummary(BaseModel):
    id: str
    username: str
    avatar_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ProfileRead(BaseModel):
    id: str
    username: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=1, max_length=255)
    full_name: Optional[str] = Field(None, max_length=255)
    avatar_url: Optional[str] = Field(None, max_length=2048)
    bio: Optional[str] = None

    model_config = ConfigDict(extra="forbid")
