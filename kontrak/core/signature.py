# ------------------------------------------------------------------------
# File: signature.py
# Location: kontrak/core/signature.py
# Description:
#     Decodes the signature payload submitted by the signing page. The
#     payload is a data URI ("data:image/png;base64,...") captured from a
#     drawing canvas. It is checked when a contract is signed and decoded
#     again when the signature block of the contract PDF is drawn.
# ------------------------------------------------------------------------

import base64
import binascii
import io
import re

from PIL import Image, UnidentifiedImageError

from kontrak.core.errors import InvalidSignatureError
from kontrak.logging_config import configure_logging

logger = configure_logging(name="kontrak.signature", logfile="kontrak.log", level=None)

DATA_URI_PATTERN = re.compile(r"^data:image/[^;,]*;base64,(.+)$", re.IGNORECASE | re.DOTALL)


def is_image_data_uri(signature_data: str) -> bool:
    return bool(signature_data) and signature_data.startswith("data:image/")


def decode_signature_image(signature_data: str) -> Image.Image:
    """
    Decode a base64 image data URI into an RGBA PIL image.
    Raises InvalidSignatureError if the payload is not a readable image.
    """
    if not is_image_data_uri(signature_data):
        raise InvalidSignatureError("Signature must be an image data URI")

    logger.debug(f"Raw signature input: {signature_data[:30]!r}...")
    match = DATA_URI_PATTERN.match(signature_data.strip())
    if not match:
        raise InvalidSignatureError("Signature data URI is not base64 encoded")

    # Remove any whitespace or non-base64 characters
    b64_clean = re.sub(r"[^A-Za-z0-9+/=]", "", match.group(1))

    # Add padding if necessary
    missing_padding = len(b64_clean) % 4
    if missing_padding:
        b64_clean += "=" * (4 - missing_padding)

    try:
        signature_bytes = base64.b64decode(b64_clean, validate=True)
    except (binascii.Error, ValueError) as decode_err:
        logger.error(f"Failed to decode base64 signature: {decode_err}")
        raise InvalidSignatureError("Unable to decode signature image") from decode_err

    try:
        Image.open(io.BytesIO(signature_bytes)).verify()  # validate image file format
        signature_img = Image.open(io.BytesIO(signature_bytes)).convert("RGBA")
    except (UnidentifiedImageError, OSError, SyntaxError) as decode_err:
        logger.error("Failed to decode and parse signature image.")
        raise InvalidSignatureError("Invalid signature image format or corrupt data.") from decode_err

    return signature_img
