# ------------------------------------------------------------------------
# File: models.py
# Location: kontrak/db/models.py
# Description:
#     ORM models: users, contract templates, contracts and the contract
#     history audit trail.
# ------------------------------------------------------------------------

from sqlalchemy import (
    Column, String, DateTime, Enum, JSON, Text, Boolean, Integer, Float,
    ForeignKey, CheckConstraint, Uuid,
)
from sqlalchemy.orm import declarative_base, relationship
import enum
import uuid
import datetime

Base = declarative_base()


def utcnow():
    return datetime.datetime.now(datetime.timezone.utc)


def ensure_utc(value):
    """Attach UTC to naive timestamps read back from backends without tz support."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


def isoformat(value):
    value = ensure_utc(value)
    return value.isoformat() if value else None


class UserRole(enum.Enum):
    user = "user"
    admin = "admin"


class ContractStatus(enum.Enum):
    draft = "draft"
    sent = "sent"
    signed = "signed"
    completed = "completed"
    expired = "expired"
    cancelled = "cancelled"


SIGNED_STATUSES = (ContractStatus.signed, ContractStatus.completed)


class User(Base):
    __tablename__ = "users"
    __table_args__ = (CheckConstraint("balance >= 0", name="ck_users_balance_non_negative"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    username = Column(String, nullable=True, unique=True)
    password_hash = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.user)
    trading_account = Column(String, nullable=True)
    balance = Column(Float, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            "id": str(self.id),
            "name": self.name,
            "email": self.email,
            "username": self.username,
            "phone": self.phone,
            "role": self.role.value,
            "trading_account": self.trading_account,
            "tradingAccount": self.trading_account,
            "balance": self.balance,
            "is_active": self.is_active,
            "last_login": isoformat(self.last_login),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


class Template(Base):
    __tablename__ = "templates"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False, default="general")
    content = Column(Text, nullable=False)
    variables = Column(JSON, nullable=False, default=list)  # distinct {{NAME}} tokens in content
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    creator = relationship("User", foreign_keys=[created_by])

    def to_dict(self):
        return {
            "id": str(self.id),
            "name": self.name,
            "category": self.category,
            "content": self.content,
            "variables": list(self.variables or []),
            "is_active": self.is_active,
            "description": self.description,
            "created_by": str(self.created_by),
            "created_by_name": self.creator.name if self.creator else None,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


class Contract(Base):
    __tablename__ = "contracts"
    __table_args__ = (CheckConstraint("amount >= 0", name="ck_contracts_amount_non_negative"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String, nullable=False)
    number = Column(String, nullable=False, unique=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    template_id = Column(Uuid, ForeignKey("templates.id"), nullable=True)
    content = Column(Text, nullable=True)
    amount = Column(Float, nullable=False, default=0)
    status = Column(Enum(ContractStatus), nullable=False, default=ContractStatus.draft)
    variables = Column(JSON, nullable=False, default=dict)
    signature_data = Column(Text, nullable=True)
    signed_at = Column(DateTime(timezone=True), nullable=True)
    expiry_date = Column(DateTime(timezone=True), nullable=True)
    admin_notes = Column(Text, nullable=True)
    access_token = Column(String, nullable=False, unique=True)
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    reminder_sent = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user = relationship("User", foreign_keys=[user_id])
    template = relationship("Template")

    def to_dict(self):
        return {
            "id": str(self.id),
            "title": self.title,
            "number": self.number,
            "user_id": str(self.user_id),
            "template_id": str(self.template_id) if self.template_id else None,
            "content": self.content,
            "amount": self.amount,
            "status": self.status.value,
            "variables": dict(self.variables or {}),
            "signed_at": isoformat(self.signed_at),
            "expiry_date": isoformat(self.expiry_date),
            "admin_notes": self.admin_notes,
            "access_token": self.access_token,
            "sent_at": isoformat(self.sent_at),
            "reminder_sent": self.reminder_sent,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


class ContractHistory(Base):
    __tablename__ = "contract_history"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    contract_id = Column(Uuid, ForeignKey("contracts.id"), nullable=False)
    action = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    performed_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    ip_address = Column(String, nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
