# discfinder/forms/__init__.py
"""
WTForms package
"""

from .auth import LoginForm, SignupForm

__all__ = ["LoginForm", "SignupForm"]
