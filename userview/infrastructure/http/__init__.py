"""User API infrastructure package."""

from .user_api_client import HttpUserTransport

__all__ = ["HttpUserTransport"]
