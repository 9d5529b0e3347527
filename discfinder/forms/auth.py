# discfinder/forms/auth.py
"""
Forms for account signup and login
"""

from flask_wtf import FlaskForm
from wtforms import PasswordField, StringField
from wtforms.validators import DataRequired, Email, Length, Optional

from discfinder.services.accounts import MIN_PASSWORD_LENGTH


class SignupForm(FlaskForm):
    """Signup payload; posted as JSON so CSRF is handled by the API layer"""

    class Meta:
        csrf = False

    email = StringField(
        "Email",
        validators=[
            DataRequired(message="Email is required."),
            Email(message="Invalid email address."),
            Length(max=255, message="Email must be less than 255 characters."),
        ],
    )
    password = PasswordField(
        "Password",
        validators=[
            DataRequired(message="Password is required."),
            Length(min=MIN_PASSWORD_LENGTH, message=f"Password must be at least {MIN_PASSWORD_LENGTH} characters."),
        ],
    )
    full_name = StringField(
        "Full Name",
        validators=[Optional(), Length(max=200, message="Name must be less than 200 characters.")],
    )


class LoginForm(FlaskForm):
    class Meta:
        csrf = False

    email = StringField("Email", validators=[DataRequired(message="Email is required.")])
    password = PasswordField("Password", validators=[DataRequired(message="Password is required.")])
