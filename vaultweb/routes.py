"""
AUTH API ROUTES - FLASK BLUEPRINT

Register, log in, log out and reset a password. The logged-in user id is
kept in Flask's signed session cookie.

Examples:
curl -X POST http://localhost:5000/api/auth/register -H "Content-Type: application/json" \
     -d '{"username": "alice", "password": "pw", "confirm_password": "pw"}'
curl -X POST http://localhost:5000/api/auth/login -H "Content-Type: application/json" \
     -d '{"username": "alice", "password": "pw"}'
"""

import functools
import logging

from flask import Blueprint, g, jsonify, request, session

from vaultstore import UserAlreadyExistsError

from .app import get_store

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def login_required(view):
    """Reject the request with 401 unless a logged-in user is in the session."""

    @functools.wraps(view)
    def wrapped(*args, **kwargs):
        user_id = session.get("user_id")
        user = get_store().get_user_by_id(user_id) if user_id else None
        if user is None:
            session.clear()
            return jsonify({"error": "Not logged in"}), 401
        g.user = user
        return view(*args, **kwargs)

    return wrapped


def json_body():
    """The request JSON object, or {} when the body is missing or not an object."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _public_user(user):
    return {"id": user["id"], "username": user["username"], "email": user.get("email", "")}


def _login(user):
    session.clear()
    session["user_id"] = user["id"]
    session["username"] = user["username"]


@auth_bp.route("/register", methods=["POST"])
def register():
    data = json_body()
    username = str(data.get("username", "")).strip()
    password = str(data.get("password", ""))
    confirm_password = str(data.get("confirm_password", ""))
    email = str(data.get("email", "")).strip()

    if not username or not password or not confirm_password:
        return jsonify({"error": "Username, password and confirmation are required"}), 400
    if password != confirm_password:
        return jsonify({"error": "Passwords do not match"}), 400

    try:
        user = get_store().create_user(username, password, email)
    except UserAlreadyExistsError as e:
        return jsonify({"error": str(e)}), 409

    _login(user)
    return jsonify({"message": "User created successfully", "user": _public_user(user)}), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    data = json_body()
    username = str(data.get("username", "")).strip()
    password = str(data.get("password", ""))
    if not username or not password:
        return jsonify({"error": "Username and password are required"}), 400

    user = get_store().verify_credentials(username, password)
    if user is None:
        logger.info("Failed login for '%s'", username)
        return jsonify({"error": "Invalid credentials"}), 401

    _login(user)
    return jsonify({"message": "Logged in", "user": _public_user(user)})


@auth_bp.route("/logout", methods=["POST"])
def logout():
    session.clear()
    return jsonify({"message": "Logged out"})


@auth_bp.route("/me", methods=["GET"])
@login_required
def me():
    return jsonify({"user": _public_user(g.user)})


@auth_bp.route("/reset-password", methods=["POST"])
def reset_password():
    data = json_body()
    username = str(data.get("username", "")).strip()
    email = str(data.get("email", "")).strip()
    new_password = str(data.get("new_password", ""))
    confirm_password = str(data.get("confirm_password", ""))

    if not username or not email or not new_password or not confirm_password:
        return jsonify({"error": "All fields are required"}), 400
    if new_password != confirm_password:
        return jsonify({"error": "Passwords do not match"}), 400

    if not get_store().reset_password(username, email, new_password):
        return jsonify({"error": "Username and email do not match"}), 404

    session.clear()
    return jsonify({"message": "Password reset, please log in again"})
