"""
Firebase authentication
"""

from easyprop.auth.firebase import (
    AuthenticatedUser,
    FirebaseAuthClient,
    firebase_auth,
    get_current_user,
    get_optional_user,
)

__all__ = [
    "AuthenticatedUser",
    "FirebaseAuthClient",
    "firebase_auth",
    "get_current_user",
    "get_optional_user",
]
