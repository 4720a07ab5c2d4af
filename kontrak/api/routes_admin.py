# File: kontrak/api/routes_admin.py

import time

from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy import func

from kontrak.core.auth import admin_required, hash_password, token_required
from kontrak.core.renderer import extract_placeholders
from kontrak.db.models import Contract, ContractStatus, SIGNED_STATUSES, Template, User, UserRole
from kontrak.db.session import get_session
from kontrak.logging_config import configure_logging

logger = configure_logging("kontrak.routes_admin", "kontrak.log")

admin_bp = Blueprint("kontrak_admin", __name__, url_prefix="/api")


def _generated_trading_account() -> str:
    return f"TRD{str(int(time.time() * 1000))[-6:]}"


@admin_bp.route("/templates", methods=["GET"])
@token_required
@admin_required
def list_templates():
    try:
        templates = (
            get_session().query(Template)
            .filter(Template.is_active.is_(True))
            .order_by(Template.created_at.desc())
            .all()
        )
        return jsonify({"data": [template.to_dict() for template in templates]})
    except Exception:
        logger.exception("Get templates error")
        return jsonify({"error": "Failed to get templates"}), 500


@admin_bp.route("/templates", methods=["POST"])
@token_required
@admin_required
def create_template():
    session = get_session()
    try:
        data = request.get_json(silent=True) or {}
        name = (data.get("name") or "").strip()
        content = (data.get("content") or "").strip()

        if not name or not content:
            return jsonify({"error": "Name and content required"}), 400

        template = Template(
            name=name,
            category=(data.get("category") or "general").strip(),
            content=content,
            description=(data.get("description") or "").strip() or None,
            variables=extract_placeholders(content),
            created_by=g.current_user.id,
        )
        session.add(template)
        session.commit()
        logger.info(f"Template created: {template.name} ({len(template.variables)} variables)")

        return jsonify({
            "message": "Template created successfully",
            "data": template.to_dict(),
        }), 201
    except Exception:
        session.rollback()
        logger.exception("Create template error")
        return jsonify({"error": "Failed to create template"}), 500


@admin_bp.route("/users", methods=["GET"])
@token_required
@admin_required
def list_users():
    try:
        users = (
            get_session().query(User)
            .filter(User.is_active.is_(True))
            .order_by(User.created_at.desc())
            .all()
        )
        return jsonify({"data": [user.to_dict() for user in users]})
    except Exception:
        logger.exception("Get users error")
        return jsonify({"error": "Failed to get users"}), 500


@admin_bp.route("/users", methods=["POST"])
@token_required
@admin_required
def create_user():
    session = get_session()
    try:
        data = request.get_json(silent=True) or {}
        name = (data.get("name") or "").strip()
        email = (data.get("email") or "").strip().lower()
        phone = (data.get("phone") or "").strip()

        if not name or not email or not phone:
            return jsonify({"error": "Name, email, and phone are required"}), 400

        if session.query(User.id).filter_by(email=email).first():
            return jsonify({"error": "Email already exists"}), 400

        default_password = current_app.config["DEFAULT_USER_PASSWORD"]
        user = User(
            name=name,
            email=email,
            phone=phone,
            password_hash=hash_password(default_password),
            role=UserRole.user,
            trading_account=(data.get("tradingAccount") or "").strip() or _generated_trading_account(),
            balance=0,
            created_by=g.current_user.id,
        )
        session.add(user)
        session.commit()
        logger.info(f"User created: {user.email} ({user.trading_account})")

        return jsonify({
            "message": "User created successfully",
            "data": user.to_dict(),
            "defaultPassword": default_password,
        }), 201
    except Exception:
        session.rollback()
        logger.exception("Create user error")
        return jsonify({"error": "Failed to create user"}), 500


@admin_bp.route("/stats/dashboard", methods=["GET"])
@token_required
def dashboard_stats():
    try:
        session = get_session()
        query = session.query(Contract)
        is_admin = g.current_user.role == UserRole.admin
        if not is_admin:
            query = query.filter(Contract.user_id == g.current_user.id)

        total_value = 0
        if is_admin:
            total_value = session.query(func.coalesce(func.sum(Contract.amount), 0)).scalar()

        return jsonify({
            "data": {
                "totalContracts": query.count(),
                "pendingSignatures": query.filter(Contract.status == ContractStatus.sent).count(),
                "completedContracts": query.filter(Contract.status.in_(SIGNED_STATUSES)).count(),
                "totalValue": total_value,
            }
        })
    except Exception:
        logger.exception("Dashboard stats error")
        return jsonify({"error": "Failed to get dashboard stats"}), 500
