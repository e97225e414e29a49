"""
Database Schemas for the Channel Chat API

Each document model represents a MongoDB collection. The collection name is the lowercase of the class name.
- User -> "user"
- Channel -> "channel"
- Message -> "message"

Request models validate incoming payloads before anything touches the database.
"""

from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

# 24 character hex string, the textual form of an ObjectId
ObjectIdStr = Annotated[str, Field(pattern=r"^[0-9a-fA-F]{24}$")]


class User(BaseModel):
    userName: str = Field(..., min_length=1, max_length=64)
    email: EmailStr
    password: str = Field(..., description="bcrypt hash")
    isAdmin: bool = False
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class Channel(BaseModel):
    channelName: str = Field(..., min_length=1, max_length=100)
    desc: Optional[str] = None
    createdBy: str = Field(..., description="creator's user id as string")
    isLocked: bool = False
    members: List[str] = Field(default_factory=list, description="member user ids as strings")
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class Message(BaseModel):
    channelId: Optional[str] = Field(None, description="null for direct messages")
    userId: str = Field(..., description="sender user's id as string")
    recipientId: Optional[str] = Field(None, description="null for channel messages")
    content: str = Field(..., min_length=1, max_length=5000)
    taggedUsers: List[str] = Field(default_factory=list)
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


# ---------- Requests ----------
class RegisterRequest(BaseModel):
    userName: str = Field(..., min_length=1, max_length=64)
    email: EmailStr
    password: str = Field(..., min_length=1)
    isAdmin: bool = False
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserUpdate(BaseModel):
    """Partial user update. Unknown keys, including the id, are dropped."""

    model_config = ConfigDict(extra="ignore")

    userName: Optional[str] = Field(None, min_length=1, max_length=64)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=1)
    isAdmin: Optional[bool] = None


class ChannelCreate(BaseModel):
    channelName: str = Field(..., min_length=1, max_length=100)
    desc: Optional[str] = Field(None, min_length=1)
    createdBy: str = Field(..., min_length=1)
    isLocked: bool
    members: List[str]
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class ChannelUpdate(BaseModel):
    """Partial channel update. Unknown keys, including the id, are dropped."""

    model_config = ConfigDict(extra="ignore")

    channelName: Optional[str] = Field(None, min_length=1, max_length=100)
    desc: Optional[str] = Field(None, min_length=1)
    createdBy: Optional[str] = Field(None, min_length=1)
    isLocked: Optional[bool] = None
    members: Optional[List[str]] = None


class MessageCreate(BaseModel):
    channelId: Optional[ObjectIdStr] = None
    userId: Optional[ObjectIdStr] = None
    recipientId: Optional[ObjectIdStr] = None
    content: str = Field(..., min_length=1, max_length=5000)
    taggedUsers: List[ObjectIdStr] = Field(default_factory=list)
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @model_validator(mode="after")
    def _one_target(self):
        if (self.channelId is None) == (self.recipientId is None):
            raise ValueError("exactly one of channelId or recipientId must be set")
        return self


# ---------- Auth ----------
class TokenData(BaseModel):
    userId: str
    email: Optional[str] = None
