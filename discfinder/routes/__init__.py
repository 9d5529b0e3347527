# discfinder/routes/__init__.py
"""
Application routes package
"""

from .admin import register_admin_routes
from .auth import register_auth_routes


def init_routes(app):
    """Initialize all application routes"""
    register_auth_routes(app)
    register_admin_routes(app)
