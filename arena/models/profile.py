from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime, timezone
from enum import Enum

class UserType(str, Enum):
    PARTICIPANT = "participant"
    COMPANY = "company"

class ProfileBase(SQLModel):
    full_name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = Field(default=None, nullable=True, index=True, unique=True, max_length=100)
    avatar_url: Optional[str] = Field(default=None, nullable=True, max_length=500)
    user_type: Optional[UserType] = Field(default=None, nullable=True)
    company_name: Optional[str] = Field(default=None, nullable=True, index=True, max_length=100)
    score: int = Field(default=0)  # Sum of the user's reviewed submission scores
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

class Profile(ProfileBase, table=True):
    user_id: Optional[int] = Field(default=None, primary_key=True)
    firebase_uid: Optional[str] = Field(default=None, nullable=True, index=True, unique=True, max_length=128)

class ProfilePublic(SQLModel):
    user_id: int
    full_name: Optional[str]
    avatar_url: Optional[str]

class ProfileMe(ProfilePublic):
    email: Optional[str]
    user_type: Optional[UserType]
    company_name: Optional[str]
    score: int
