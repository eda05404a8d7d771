"""
Directory Interfaces Layer
==========================

FastAPI routes for authentication, users, roles, projects and ticket types.
"""

from servicedesk.directory.interfaces.controllers import auth_router, directory_router

__all__ = ["auth_router", "directory_router"]
