# File: kontrak/api/routes_contracts.py

from datetime import datetime, timezone

from flask import Blueprint, current_app, g, jsonify, request

from kontrak.api.helpers import parse_uuid, pdf_response
from kontrak.core.auth import admin_required, token_required
from kontrak.core.contracts import (
    access_link, contract_document, generate_access_token, generate_contract_number,
    is_signed, record_history,
)
from kontrak.core.document import contract_filename, generate_contract_pdf
from kontrak.core.errors import DocumentGenerationError
from kontrak.core.notify import send_webhook_if_enabled
from kontrak.db.models import Contract, ContractStatus, Template, User, UserRole, utcnow
from kontrak.db.session import get_session
from kontrak.logging_config import configure_logging

logger = configure_logging("kontrak.routes_contracts", "kontrak.log")

contracts_bp = Blueprint("kontrak_contracts", __name__, url_prefix="/api/contracts")

CONTRACT_LIST_LIMIT = 100
NUMBER_ATTEMPTS = 5


def _parse_expiry(value):
    if value in (None, ""):
        return None
    expiry = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=timezone.utc)
    return expiry


def _unique_contract_number(session):
    for _ in range(NUMBER_ATTEMPTS):
        number = generate_contract_number()
        if not session.query(Contract.id).filter_by(number=number).first():
            return number
    raise RuntimeError("Could not allocate a unique contract number")


@contracts_bp.route("", methods=["GET"])
@token_required
def list_contracts():
    try:
        session = get_session()
        query = session.query(Contract)
        if g.current_user.role != UserRole.admin:
            query = query.filter(Contract.user_id == g.current_user.id)

        contracts = query.order_by(Contract.created_at.desc()).limit(CONTRACT_LIST_LIMIT).all()

        formatted = []
        for contract in contracts:
            item = contract.to_dict()
            item["user_name"] = contract.user.name if contract.user else None
            item["user_email"] = contract.user.email if contract.user else None
            item["trading_account"] = contract.user.trading_account if contract.user else None
            item["template_name"] = contract.template.name if contract.template else None
            formatted.append(item)

        return jsonify({"data": formatted})
    except Exception:
        logger.exception("Get contracts error")
        return jsonify({"error": "Failed to get contracts"}), 500


@contracts_bp.route("", methods=["POST"])
@token_required
@admin_required
def create_contract():
    session = get_session()
    try:
        data = request.get_json(silent=True) or {}
        title = (data.get("title") or "").strip()
        amount = data.get("amount")

        if not title or not data.get("templateId") or not data.get("userId") or amount is None:
            return jsonify({"error": "Missing required fields"}), 400

        template_id = parse_uuid(data.get("templateId"))
        user_id = parse_uuid(data.get("userId"))
        if not template_id or not user_id:
            return jsonify({"error": "Invalid template or user ID"}), 400

        try:
            amount = float(amount)
        except (TypeError, ValueError):
            return jsonify({"error": "Invalid amount"}), 400
        if amount < 0:
            return jsonify({"error": "Amount must not be negative"}), 400

        variables = data.get("variables") or {}
        if not isinstance(variables, dict):
            return jsonify({"error": "Variables must be an object"}), 400

        try:
            expiry_date = _parse_expiry(data.get("expiryDate"))
        except ValueError:
            return jsonify({"error": "Invalid expiry date"}), 400

        template = session.query(Template).filter_by(id=template_id, is_active=True).first()
        if not template:
            return jsonify({"error": "Template not found"}), 404

        owner = session.query(User).filter_by(id=user_id, is_active=True).first()
        if not owner:
            return jsonify({"error": "User not found"}), 404

        send_immediately = bool(data.get("sendImmediately"))
        contract = Contract(
            title=title,
            number=_unique_contract_number(session),
            user_id=owner.id,
            template_id=template.id,
            content=template.content,
            amount=amount,
            status=ContractStatus.sent if send_immediately else ContractStatus.draft,
            variables={key: "" if value is None else str(value) for key, value in variables.items()},
            expiry_date=expiry_date,
            admin_notes=(data.get("adminNotes") or "").strip() or None,
            access_token=generate_access_token(),
            created_by=g.current_user.id,
            sent_at=utcnow() if send_immediately else None,
        )
        session.add(contract)
        session.flush()
        record_history(session, contract, "created", f"Contract created from template {template.name}",
                       performed_by=g.current_user.id)
        session.commit()

        link = access_link(current_app.config["FRONTEND_URL"], contract.access_token)
        logger.info(f"Contract {contract.number} created for {owner.email} (status: {contract.status.value})")
        if send_immediately:
            send_webhook_if_enabled(
                f"New contract ready for signing:\n"
                f"Number: {contract.number}\n"
                f"Client: {owner.name}\n"
                f"URL: {link}"
            )

        return jsonify({
            "message": "Contract created successfully",
            "data": contract.to_dict(),
            "accessLink": link,
        }), 201
    except Exception:
        session.rollback()
        logger.exception("Create contract error")
        return jsonify({"error": "Failed to create contract"}), 500


@contracts_bp.route("/<contract_id>/generate-link", methods=["POST"])
@token_required
@admin_required
def generate_link(contract_id):
    session = get_session()
    try:
        parsed_id = parse_uuid(contract_id)
        if not parsed_id:
            return jsonify({"error": "Invalid contract ID"}), 400

        contract = session.get(Contract, parsed_id)
        if not contract:
            return jsonify({"error": "Contract not found"}), 404

        link = access_link(current_app.config["FRONTEND_URL"], contract.access_token)
        if contract.status == ContractStatus.draft:
            contract.status = ContractStatus.sent
            contract.sent_at = utcnow()
            record_history(session, contract, "sent", "Access link generated",
                           performed_by=g.current_user.id)
            session.commit()
            logger.info(f"Contract {contract.number} moved to sent")
            send_webhook_if_enabled(
                f"New contract ready for signing:\n"
                f"Number: {contract.number}\n"
                f"Client: {contract.user.name}\n"
                f"URL: {link}"
            )

        return jsonify({
            "message": "Contract link generated successfully",
            "accessLink": link,
            "token": contract.access_token,
        })
    except Exception:
        session.rollback()
        logger.exception("Generate link error")
        return jsonify({"error": "Failed to generate link"}), 500


@contracts_bp.route("/download/<contract_id>", methods=["GET"])
async def download_contract(contract_id):
    try:
        parsed_id = parse_uuid(contract_id)
        if not parsed_id:
            return jsonify({"error": "Invalid contract ID"}), 400

        session = get_session()
        contract = session.get(Contract, parsed_id)
        if not contract:
            return jsonify({"error": "Contract not found"}), 404

        if not is_signed(contract):
            return jsonify({"error": "Contract is not signed yet"}), 400

        pdf_bytes = await generate_contract_pdf(contract_document(contract))
        logger.info(f"Serving signed PDF for contract {contract.number}")
        return pdf_response(pdf_bytes, contract_filename(contract.number))
    except DocumentGenerationError:
        return jsonify({"error": "Failed to download contract"}), 500
    except Exception:
        logger.exception("Download contract error")
        return jsonify({"error": "Failed to download contract"}), 500
