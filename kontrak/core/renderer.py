# ------------------------------------------------------------------------
# File: renderer.py
# Location: kontrak/core/renderer.py
# Description:
#     Resolves {{PLACEHOLDER}} tokens in contract text. Built-in values taken
#     from the contract and its owner are substituted first, then every key
#     of the contract's custom variable map. Tokens with no value anywhere
#     are left in the text untouched. Values are formatted for the
#     Indonesian locale (d/m/yyyy dates, Rupiah amounts without decimals).
# ------------------------------------------------------------------------

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP

PLACEHOLDER_PATTERN = re.compile(r"\{\{([A-Z_]+)\}\}")

# Western Indonesia Time, no DST
DISPLAY_TIMEZONE = timezone(timedelta(hours=7), "WIB")


@dataclass(frozen=True)
class BuiltinVariables:
    """Values that are always resolved from the contract and user records."""

    user_name: str
    user_email: str
    user_phone: str
    trading_id: str
    contract_number: str
    created_at: datetime
    amount: float

    def as_placeholders(self) -> dict:
        return {
            "USER_NAME": self.user_name or "",
            "USER_EMAIL": self.user_email or "",
            "USER_PHONE": self.user_phone or "",
            "TRADING_ID": self.trading_id or "",
            "CONTRACT_NUMBER": self.contract_number or "",
            "CONTRACT_DATE": format_date_id(self.created_at),
            "AMOUNT": format_rupiah(self.amount),
        }


def _to_display_tz(value: datetime) -> datetime:
    # Naive timestamps come back from the database in UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(DISPLAY_TIMEZONE)


def format_date_id(value: datetime) -> str:
    """Format a timestamp as an id-ID short date, e.g. 5/3/2024."""
    if value is None:
        return ""
    local = _to_display_tz(value)
    return f"{local.day}/{local.month}/{local.year}"


def format_datetime_id(value: datetime) -> str:
    """Format a timestamp as an id-ID date and time, e.g. 5/3/2024, 14.05.09."""
    if value is None:
        return ""
    local = _to_display_tz(value)
    return f"{format_date_id(local)}, {local:%H.%M.%S}"


def format_rupiah(amount) -> str:
    """Format an amount as IDR currency with no fraction digits, e.g. Rp50.000.000."""
    value = Decimal(str(amount or 0)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    grouped = f"{abs(int(value)):,}".replace(",", ".")
    return f"{sign}Rp{grouped}"


def extract_placeholders(content: str) -> list:
    """Distinct placeholder names in order of first appearance."""
    names = []
    for match in PLACEHOLDER_PATTERN.finditer(content or ""):
        if match.group(1) not in names:
            names.append(match.group(1))
    return names


def _replace_all(text: str, name: str, value) -> str:
    return text.replace("{{" + name + "}}", "" if value is None else str(value))


def render_contract_text(body: str, builtins: BuiltinVariables, variables: dict = None) -> str:
    """
    Substitute built-in placeholders, then custom variables, into ``body``.

    Custom keys are matched literally and case-sensitively at every
    occurrence; a missing value becomes an empty string. Keys that overlap
    as substrings may interfere with each other and must be avoided by the
    caller. Placeholders without any binding pass through unchanged.
    """
    content = body or ""

    for name, value in builtins.as_placeholders().items():
        content = _replace_all(content, name, value)

    for name, value in (variables or {}).items():
        content = _replace_all(content, name, value)

    return content
