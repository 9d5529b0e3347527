"""
Utility helpers for importer feature flag and setting lookups.
"""

from __future__ import annotations

from typing import Any

from flask import current_app, has_app_context

_DEFAULTS = {
    "IMPORTER_ROW_DELAY_SECONDS": 0.1,
    "IMPORTER_THROTTLE_EVERY": 10,
    "IMPORTER_ERROR_PREVIEW_LIMIT": 10,
    "IMPORTER_DEFAULT_COUNTRY_CODE": "1",
    "IMPORTER_DEFAULT_LOCATION_FOUND": "Exact location unknown.",
}


def _get_config(app=None):
    if app is not None:
        return app.config
    if has_app_context():
        return current_app.config
    return {}


def is_importer_enabled(app=None) -> bool:
    """Return True when the importer feature flag is enabled."""
    config = _get_config(app)
    return bool(config.get("IMPORTER_ENABLED", False))


def get_importer_setting(name: str, app=None) -> Any:
    """Read an ``IMPORTER_*`` setting, falling back to the documented default."""
    config = _get_config(app)
    return config.get(name, _DEFAULTS.get(name))
