# ------------------------------------------------------------------------
# File: contracts.py
# Location: kontrak/core/contracts.py
# Description:
#     Contract lifecycle helpers shared by the HTTP routes and batch
#     scripts: number and access token generation, resolving the text a
#     contract is rendered from, expiry handling and the audit history.
# ------------------------------------------------------------------------

import random
import secrets
from datetime import datetime, timezone

from kontrak.core.document import ContractDocument
from kontrak.core.renderer import BuiltinVariables, render_contract_text
from kontrak.db.models import (
    Contract, ContractHistory, ContractStatus, SIGNED_STATUSES, ensure_utc, utcnow,
)
from kontrak.logging_config import configure_logging

logger = configure_logging(name="kontrak.contracts", logfile="kontrak.log", level=None)

ACCESS_TOKEN_MIN_LENGTH = 32
EXPIRABLE_STATUSES = (ContractStatus.draft, ContractStatus.sent)


def generate_access_token() -> str:
    return secrets.token_hex(32)


def generate_contract_number(now: datetime = None) -> str:
    now = now or datetime.now()
    return f"TSC{now:%Y%m%d}{random.randint(0, 9998):04d}"


def access_link(frontend_url: str, token: str) -> str:
    return f"{frontend_url.rstrip('/')}/?token={token}"


def contract_body(contract: Contract) -> str:
    """Stored contract text, falling back to the template it was issued from."""
    if contract.content:
        return contract.content
    if contract.template is not None:
        return contract.template.content or ""
    return ""


def builtin_variables(contract: Contract) -> BuiltinVariables:
    user = contract.user
    return BuiltinVariables(
        user_name=user.name,
        user_email=user.email,
        user_phone=user.phone,
        trading_id=user.trading_account,
        contract_number=contract.number,
        created_at=contract.created_at,
        amount=contract.amount,
    )


def render_contract(contract: Contract, variables: dict = None) -> str:
    """Contract text with placeholders resolved; ``variables`` overrides the stored map."""
    if variables is None:
        variables = contract.variables or {}
    return render_contract_text(contract_body(contract), builtin_variables(contract), variables)


def contract_document(contract: Contract, variables: dict = None,
                      signature_data: str = None, signed_at: datetime = None) -> ContractDocument:
    """Formatter input for ``contract``; signature fields default to the stored ones."""
    return ContractDocument(
        number=contract.number,
        title=contract.title,
        created_at=contract.created_at,
        body=render_contract(contract, variables),
        signer_name=contract.user.name,
        trading_id=contract.user.trading_account,
        signature_data=signature_data if signature_data is not None else contract.signature_data,
        signed_at=signed_at if signed_at is not None else contract.signed_at,
    )


def is_signed(contract: Contract) -> bool:
    return contract.status in SIGNED_STATUSES


def is_past_expiry(contract: Contract, now: datetime = None) -> bool:
    if contract.expiry_date is None:
        return False
    now = now or datetime.now(timezone.utc)
    return now > ensure_utc(contract.expiry_date)


def record_history(session, contract: Contract, action: str, description: str = None,
                   performed_by=None, ip_address: str = None, user_agent: str = None) -> ContractHistory:
    entry = ContractHistory(
        contract_id=contract.id,
        action=action,
        description=description,
        performed_by=performed_by,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    session.add(entry)
    return entry


def expire_if_overdue(session, contract: Contract, now: datetime = None) -> bool:
    """
    Move an unsigned contract past its expiry date to ``expired``.
    Signed contracts keep their status. Returns True if the contract is
    (now) expired. The caller commits.
    """
    if contract.status == ContractStatus.expired:
        return True
    if contract.status not in EXPIRABLE_STATUSES or not is_past_expiry(contract, now):
        return False

    logger.info(f"Contract {contract.number} expired at {contract.expiry_date}")
    contract.status = ContractStatus.expired
    record_history(session, contract, "expired", "Contract expired before it was signed")
    return True


def expire_overdue_contracts(session, now: datetime = None, dry_run: bool = False) -> list:
    """Expire every draft/sent contract whose expiry date has passed. Returns their numbers."""
    now = now or utcnow()
    candidates = (
        session.query(Contract)
        .filter(Contract.status.in_(EXPIRABLE_STATUSES))
        .filter(Contract.expiry_date.isnot(None))
        .all()
    )

    expired = []
    for contract in candidates:
        if not is_past_expiry(contract, now):
            continue
        expired.append(contract.number)
        if dry_run:
            logger.info(f"Dry run: would expire contract {contract.number}")
            continue
        expire_if_overdue(session, contract, now)

    if not dry_run:
        session.commit()
    return expired
