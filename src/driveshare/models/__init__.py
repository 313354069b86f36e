"""SQLModel database models for driveshare."""

from driveshare.models.resources import Resource, ResourceBase
from driveshare.models.shares import (
    AccessGrant,
    AccessGrantBase,
    PublicLink,
    PublicLinkBase,
)
from driveshare.models.users import User, UserBase

__all__ = [
    "AccessGrant",
    "AccessGrantBase",
    "PublicLink",
    "PublicLinkBase",
    "Resource",
    "ResourceBase",
    "User",
    "UserBase",
]
