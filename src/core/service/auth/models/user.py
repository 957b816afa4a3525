"""
User model for persistent database storage
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class User(BaseModel):
    """User database model"""
    id: Optional[UUID] = None
    name: str
    address: str
    role: UserRole = UserRole.USER
    is_address_verified: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserCreate(BaseModel):
    """Fields needed to provision a user"""
    name: str
    address: str
    role: UserRole = UserRole.USER
    is_address_verified: bool = False
