"""
Repository layer for database access.
"""

from .base import BaseRepository
from .user import UserRepository, ProfileRepository, LoginSessionRepository
from .property import ListingRepository, SalePropertyRepository, RentalPropertyRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "ProfileRepository",
    "LoginSessionRepository",
    "ListingRepository",
    "SalePropertyRepository",
    "RentalPropertyRepository",
]
