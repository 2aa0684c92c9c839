"""
SQLAlchemy ORM models package.

All models are imported here so that:
  1. Base.metadata knows every table before create_all() runs
  2. Other modules can import from netbank.models directly
"""

from netbank.models.user import User, Role  # noqa: F401
from netbank.models.account_holder import AccountHolder  # noqa: F401
from netbank.models.account import Account, AccountType  # noqa: F401
from netbank.models.transaction import Transaction, TransactionType, TransactionStatus  # noqa: F401
from netbank.models.service_request import ServiceRequest, ServiceRequestStatus, CardStatus  # noqa: F401
from netbank.models.notification import Notification  # noqa: F401
