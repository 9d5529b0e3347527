# discfinder/utils/permissions.py

from functools import wraps

from flask import jsonify
from flask_login import current_user

from discfinder.models import UserRole


def role_required(*roles):
    """Restrict a JSON endpoint to signed-in accounts holding one of ``roles``"""

    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if not current_user.is_authenticated:
                return jsonify({"error": "Authentication required"}), 401
            if current_user.role not in roles:
                return jsonify({"error": "Insufficient permissions"}), 403
            return view(*args, **kwargs)

        return wrapped

    return decorator


def admin_required(view):
    return role_required(UserRole.ADMIN)(view)
