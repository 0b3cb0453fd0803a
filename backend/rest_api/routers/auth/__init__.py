"""
Authentication routers - /api/auth/*
Handles mobile and web login, logout, current user and registration.
"""

from .routes import router

__all__ = ["router"]
