"""
Database models for the remote store.
Includes auth identities, profiles, login sessions and the two listing tables.
"""

from silver_estates.models.user import User, Profile, LoginSession
from silver_estates.models.property import SaleProperty, RentalProperty

# Export all models for easy importing
__all__ = [
    "User",
    "Profile",
    "LoginSession",
    "SaleProperty",
    "RentalProperty",
]
