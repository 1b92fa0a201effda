# src/chirp_access/models/__init__.py
"""SQLAlchemy models for the Chirp access layer."""

from .admin_key import AdminKey
from .content import Comment, Like, Post, Retweet
from .profile import UserProfile

__all__ = [
    "AdminKey",
    "Comment", "Like", "Post", "Retweet",
    "UserProfile",
]
