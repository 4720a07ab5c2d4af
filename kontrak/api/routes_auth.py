# File: kontrak/api/routes_auth.py

from flask import Blueprint, g, jsonify, request
from sqlalchemy import or_

from kontrak.core.auth import create_access_token, token_required, verify_password
from kontrak.db.models import User, utcnow
from kontrak.db.session import get_session
from kontrak.logging_config import configure_logging

logger = configure_logging("kontrak.routes_auth", "kontrak.log")

auth_bp = Blueprint("kontrak_auth", __name__, url_prefix="/api/auth")


@auth_bp.route("/login", methods=["POST"])
def login():
    try:
        data = request.get_json(silent=True) or {}
        email = (data.get("email") or "").strip()
        password = data.get("password") or ""

        if not email or not password:
            return jsonify({"error": "Email and password required"}), 400

        identifier = email.lower()
        session = get_session()
        user = (
            session.query(User)
            .filter(or_(User.email == identifier, User.username == identifier))
            .filter(User.is_active.is_(True))
            .first()
        )

        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login attempt for: {identifier}")
            return jsonify({"error": "Invalid credentials"}), 401

        user.last_login = utcnow()
        session.commit()

        token = create_access_token(user)
        logger.info(f"User logged in: {user.email}")
        return jsonify({
            "message": "Login successful",
            "token": token,
            "user": user.to_dict(),
        })
    except Exception:
        logger.exception("Login error")
        return jsonify({"error": "Login failed"}), 500


@auth_bp.route("/me", methods=["GET"])
@token_required
def me():
    return jsonify({"user": g.current_user.to_dict()})
