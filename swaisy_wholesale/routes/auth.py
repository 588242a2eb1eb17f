"""Login, session and user-management routes."""

from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import Blueprint, current_app, jsonify, request, session

from ..common.errors import NotFoundError
from ..common.models.user import User
from ..common.services.logging import log_event
from ..services.user_directory import has_permission

auth_bp = Blueprint("swaisy_auth", __name__, url_prefix="/auth")

SESSION_USER_KEY = "swaisy_user_id"


def _components() -> dict:
    return current_app.extensions["swaisy_components"]


def current_user() -> Optional[User]:
    user_id = session.get(SESSION_USER_KEY)
    if not user_id:
        return None
    return _components()["user_directory"].get_user(user_id)


def requires(permission: Optional[str] = None):
    """Reject the request with 401/403 unless the session user may ``permission``."""

    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            user = current_user()
            if user is None:
                return jsonify({"status": "error", "message": "login required"}), 401
            if permission and not has_permission(user, permission):
                return jsonify({"status": "error", "message": "permission denied"}), 403
            return view(*args, **kwargs)

        return wrapped

    return decorator


@auth_bp.post("/login")
def login():
    payload = request.get_json(silent=True) or request.form
    username = str(payload.get("username", "")).strip()
    password = str(payload.get("password", ""))
    user = _components()["user_directory"].authenticate(username, password)
    if user is None:
        log_event("warning", "auth.login_failed", username=username)
        return jsonify({"status": "error", "message": "Invalid credentials"}), 401
    session[SESSION_USER_KEY] = user.id
    return jsonify({"status": "ok", "user": user.to_dict()})


@auth_bp.post("/logout")
def logout():
    session.pop(SESSION_USER_KEY, None)
    return jsonify({"status": "ok"})


@auth_bp.get("/me")
@requires()
def me():
    return jsonify({"status": "ok", "user": current_user().to_dict()})


@auth_bp.get("/users")
@requires("users.manage")
def list_users():
    users = _components()["user_directory"].list_users()
    return jsonify({"status": "ok", "users": [u.to_dict() for u in users]})


@auth_bp.post("/users")
@requires("users.manage")
def add_user():
    payload = request.get_json(silent=True) or {}
    try:
        user = User.from_dict({**payload, "id": ""})
        user = _components()["user_directory"].add_user(user)
    except ValueError as exc:
        return jsonify({"status": "error", "message": str(exc)}), 400
    return jsonify({"status": "ok", "user": user.to_dict()}), 201


@auth_bp.put("/users/<user_id>")
@requires("users.manage")
def update_user(user_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        user = User.from_dict({**payload, "id": user_id})
        user = _components()["user_directory"].update_user(user)
    except ValueError as exc:
        return jsonify({"status": "error", "message": str(exc)}), 400
    except NotFoundError:
        return jsonify({"status": "error", "message": "user not found"}), 404
    return jsonify({"status": "ok", "user": user.to_dict()})


@auth_bp.delete("/users/<user_id>")
@requires("users.manage")
def delete_user(user_id: str):
    if user_id == session.get(SESSION_USER_KEY):
        return jsonify({"status": "error", "message": "cannot delete the signed-in user"}), 400
    try:
        _components()["user_directory"].delete_user(user_id)
    except NotFoundError:
        return jsonify({"status": "error", "message": "user not found"}), 404
    return jsonify({"status": "ok"})
