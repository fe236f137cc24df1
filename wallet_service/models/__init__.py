"""
SQLAlchemy ORM models package.

All models are imported here so that:
  1. Base.metadata knows every table before create_all() runs
  2. Other modules can import from wallet_service.models directly
"""

from wallet_service.models.user import User  # noqa: F401
from wallet_service.models.wallet import Wallet  # noqa: F401
from wallet_service.models.transaction import Transaction  # noqa: F401
from wallet_service.models.audit_log import AuditLog, AuditAction, AuditStatus  # noqa: F401
