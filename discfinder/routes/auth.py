# discfinder/routes/auth.py

"""
JSON authentication endpoints: signup, login, logout and the current profile.
"""

from flask import current_app, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user
from werkzeug.datastructures import MultiDict

from discfinder.forms import LoginForm, SignupForm
from discfinder.services import AccountError, LinkState, authenticate, register_account


def _form_data():
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return MultiDict({key: value for key, value in payload.items() if value is not None})
    return request.form


def _form_errors(form):
    return {field: list(messages) for field, messages in form.errors.items()}


def register_auth_routes(app):
    """Register authentication routes"""

    @app.route("/api/auth/signup", methods=["POST"])
    def api_signup():
        form = SignupForm(formdata=_form_data())
        if not form.validate():
            return jsonify({"error": "Invalid signup request", "fields": _form_errors(form)}), 400

        try:
            account, outcome = register_account(form.email.data, form.password.data, form.full_name.data)
        except AccountError as e:
            return jsonify({"error": e.message}), e.status_code
        except Exception as e:
            current_app.logger.error(f"Unexpected error during signup: {str(e)}", exc_info=True)
            return jsonify({"error": "An error occurred while creating the account"}), 500

        # The account exists even when no profile could be written.
        if outcome.state == LinkState.FAILED:
            current_app.logger.error(f"Signup for {account.email} completed without a profile")
        login_user(account)
        return jsonify({"account_id": account.id, "email": account.email, "link": outcome.as_dict()}), 201

    @app.route("/api/auth/login", methods=["POST"])
    def api_login():
        form = LoginForm(formdata=_form_data())
        if not form.validate():
            return jsonify({"error": "Invalid login request", "fields": _form_errors(form)}), 400

        account = authenticate(form.email.data, form.password.data)
        if account is None:
            current_app.logger.warning(f"Failed login attempt for {form.email.data}")
            return jsonify({"error": "Invalid email or password"}), 401

        login_user(account)
        profile = account.profile
        return jsonify({"account_id": account.id, "profile": profile.to_dict() if profile else None})

    @app.route("/api/auth/logout", methods=["POST"])
    @login_required
    def api_logout():
        logout_user()
        return jsonify({"status": "logged_out"})

    @app.route("/api/auth/me", methods=["GET"])
    @login_required
    def api_me():
        profile = current_user.profile
        return jsonify(
            {
                "account_id": current_user.id,
                "email": current_user.email,
                "role": current_user.role.value,
                "profile": profile.to_dict() if profile else None,
            }
        )
