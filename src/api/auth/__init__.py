"""
Auth API package.

Contains the OTP registration, password reset and login routes.
"""

from src.api.auth.routes import router

__all__ = ["router"]
