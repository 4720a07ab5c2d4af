# File: kontrak/api/helpers.py

import io
import uuid

from flask import request, send_file


def client_ip() -> str:
    """First X-Forwarded-For hop as reported by the client. Audit trail only, never a rate-limit key."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr or "unknown"


def parse_uuid(value):
    """UUID from a path or body value, or None when it is not a valid id."""
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def pdf_response(pdf_bytes: bytes, filename: str, as_attachment: bool = True):
    return send_file(
        io.BytesIO(pdf_bytes),
        mimetype="application/pdf",
        as_attachment=as_attachment,
        download_name=filename,
    )
