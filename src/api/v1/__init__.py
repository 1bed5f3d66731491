"""
API v1 package.

Contains the registration resource routes.
"""

from src.api.v1.routes import build_router, registration_routes

__all__ = ["build_router", "registration_routes"]
