"""
API v1 package.

Contains versioned API routes for the registration, recovery and
email change flows.
"""

from src.api.v1.routes import router

__all__ = ["router"]
