# ------------------------------------------------------------------------
# File: auth.py
# Location: kontrak/core/auth.py
# Description:
#     Password hashing, bearer tokens and route guards.
# ------------------------------------------------------------------------

import uuid
from datetime import datetime, timedelta, timezone
from functools import wraps

import bcrypt
import jwt
from flask import current_app, g, has_app_context, jsonify, request

from kontrak.core.errors import AuthError
from kontrak.db.models import User, UserRole
from kontrak.db.session import get_session
from kontrak.logging_config import configure_logging

logger = configure_logging(name="kontrak.auth", logfile="kontrak.log", level=None)

JWT_ALGORITHM = "HS256"
DEFAULT_BCRYPT_ROUNDS = 12


def hash_password(password: str, rounds: int = None) -> str:
    if rounds is None:
        rounds = current_app.config["BCRYPT_ROUNDS"] if has_app_context() else DEFAULT_BCRYPT_ROUNDS
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def create_access_token(user: User) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "userId": str(user.id),
        "email": user.email,
        "role": user.role.value,
        "iat": now,
        "exp": now + timedelta(days=current_app.config["JWT_EXPIRES_DAYS"]),
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, current_app.config["JWT_SECRET"], algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as exc:
        logger.warning("Token verification error: %s", exc)
        raise AuthError("Invalid or expired token", 403) from exc


def _bearer_token():
    auth_header = request.headers.get("Authorization", "")
    parts = auth_header.split(" ", 1)
    if len(parts) == 2 and parts[1].strip():
        return parts[1].strip()
    return None


def authenticate_request() -> User:
    token = _bearer_token()
    if not token:
        raise AuthError("Access token required", 401)

    payload = decode_access_token(token)
    try:
        user_id = uuid.UUID(str(payload.get("userId")))
    except ValueError as exc:
        raise AuthError("Invalid or expired token", 403) from exc

    user = get_session().query(User).filter_by(id=user_id, is_active=True).first()
    if not user:
        raise AuthError("Invalid token or user not found", 401)
    return user


def token_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            g.current_user = authenticate_request()
        except AuthError as e:
            return jsonify({"error": e.message}), e.status_code
        return view(*args, **kwargs)
    return wrapper


def admin_required(view):
    """Must be applied beneath token_required."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        if g.current_user.role != UserRole.admin:
            logger.warning(f"Non-admin user {g.current_user.email} denied admin route {request.path}")
            return jsonify({"error": "Admin access required"}), 403
        return view(*args, **kwargs)
    return wrapper
