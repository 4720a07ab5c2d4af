# File: kontrak/api/routes_access.py
# DESCRIPTION: Link-based contract access. The access token in the URL is the
# only credential; these routes let the contract owner read, preview and sign.

from flask import Blueprint, jsonify, request

from kontrak.api.helpers import client_ip, pdf_response
from kontrak.core.contracts import (
    ACCESS_TOKEN_MIN_LENGTH, contract_document, expire_if_overdue, is_signed,
    record_history, render_contract,
)
from kontrak.core.document import contract_filename, generate_contract_pdf
from kontrak.core.errors import DocumentGenerationError, InvalidSignatureError
from kontrak.core.notify import send_webhook_if_enabled
from kontrak.core.signature import decode_signature_image, is_image_data_uri
from kontrak.db.models import Contract, ContractStatus, isoformat, utcnow
from kontrak.db.session import get_session
from kontrak.logging_config import configure_logging

logger = configure_logging("kontrak.routes_access", "kontrak.log")

access_bp = Blueprint("kontrak_access", __name__, url_prefix="/api/contracts/access")


def _find_by_token(session, token):
    return session.query(Contract).filter_by(access_token=token).first()


@access_bp.route("/<token>", methods=["GET"])
def view_contract(token):
    try:
        if not token or len(token) < ACCESS_TOKEN_MIN_LENGTH:
            return jsonify({"error": "Invalid access token"}), 400

        logger.info(f"Contract access requested for token: {token[:8]}...")
        session = get_session()
        contract = _find_by_token(session, token)

        if not contract or not contract.user or not contract.user.is_active:
            return jsonify({"error": "Contract not found or access denied"}), 404

        if expire_if_overdue(session, contract):
            session.commit()
            logger.warning(f"Expired contract accessed. Token: {token[:8]}...")
            return jsonify({"error": "Contract has expired"}), 410

        data = contract.to_dict()
        data["content"] = render_contract(contract)
        data["user"] = {
            "name": contract.user.name,
            "email": contract.user.email,
            "phone": contract.user.phone,
            "trading_account": contract.user.trading_account,
        }
        data["template"] = {
            "name": contract.template.name,
            "variables": list(contract.template.variables or []),
        } if contract.template else None

        return jsonify({"data": data})
    except Exception:
        logger.exception("Contract access error")
        return jsonify({"error": "Failed to access contract"}), 500


@access_bp.route("/<token>/preview", methods=["GET"])
async def preview_contract(token):
    try:
        if not token or len(token) < ACCESS_TOKEN_MIN_LENGTH:
            return jsonify({"error": "Invalid access token"}), 400

        session = get_session()
        contract = _find_by_token(session, token)
        if not contract or not contract.user or not contract.user.is_active:
            return jsonify({"error": "Contract not found or access denied"}), 404

        if expire_if_overdue(session, contract):
            session.commit()
            return jsonify({"error": "Contract has expired"}), 410

        pdf_bytes = await generate_contract_pdf(contract_document(contract))
        return pdf_response(pdf_bytes, contract_filename(contract.number), as_attachment=False)
    except DocumentGenerationError:
        return jsonify({"error": "Failed to generate document"}), 500
    except Exception:
        logger.exception("Contract preview error")
        return jsonify({"error": "Failed to generate document"}), 500


@access_bp.route("/<token>/sign", methods=["POST"])
async def sign_contract(token):
    session = get_session()
    try:
        data = request.get_json(silent=True) or {}
        signature_data = data.get("signatureData")
        variables = data.get("variables")

        if not signature_data:
            return jsonify({"error": "Signature data required"}), 400

        if not isinstance(signature_data, str) or not is_image_data_uri(signature_data):
            return jsonify({"error": "Invalid signature format"}), 400

        try:
            decode_signature_image(signature_data)
        except InvalidSignatureError as e:
            logger.warning(f"Rejected signature for token {token[:8]}...: {e}")
            return jsonify({"error": "Invalid signature format"}), 400

        if variables is not None and not isinstance(variables, dict):
            return jsonify({"error": "Variables must be an object"}), 400

        contract = _find_by_token(session, token)
        if not contract:
            return jsonify({"error": "Contract not found"}), 404

        if is_signed(contract):
            return jsonify({"error": "Contract already signed"}), 400

        if expire_if_overdue(session, contract):
            session.commit()
            return jsonify({"error": "Contract has expired"}), 410

        if contract.status != ContractStatus.sent:
            return jsonify({"error": "Contract is not ready for signing"}), 400

        final_variables = {**(contract.variables or {}), **(variables or {})}
        signed_at = utcnow()

        # The signed document must be producible before the signature is accepted
        await generate_contract_pdf(
            contract_document(contract, final_variables, signature_data, signed_at)
        )

        updated = (
            session.query(Contract)
            .filter(Contract.id == contract.id, Contract.status == ContractStatus.sent)
            .update({
                Contract.status: ContractStatus.signed,
                Contract.signature_data: signature_data,
                Contract.signed_at: signed_at,
                Contract.variables: final_variables,
            }, synchronize_session=False)
        )
        if updated != 1:
            session.rollback()
            logger.warning(f"Concurrent signing rejected for contract {contract.number}")
            return jsonify({"error": "Contract already signed"}), 400

        record_history(
            session,
            contract,
            "signed",
            "Contract signed by user with digital signature",
            performed_by=contract.user_id,
            ip_address=client_ip(),
            user_agent=request.headers.get("User-Agent"),
        )
        session.commit()
        logger.info(f"Contract {contract.number} signed by {contract.user.name}")

        send_webhook_if_enabled(
            f"Contract signed:\n"
            f"Number: {contract.number}\n"
            f"Title: {contract.title}\n"
            f"Client: {contract.user.name}\n"
            f"Trading ID: {contract.user.trading_account}\n"
            f"Signed At: {isoformat(signed_at)}"
        )

        return jsonify({
            "message": "Contract signed successfully",
            "pdfDownloadUrl": f"/api/contracts/download/{contract.id}",
            "signedAt": isoformat(signed_at),
        })
    except DocumentGenerationError:
        session.rollback()
        return jsonify({"error": "Failed to sign contract"}), 500
    except Exception:
        session.rollback()
        logger.exception("Contract signing error")
        return jsonify({"error": "Failed to sign contract"}), 500
