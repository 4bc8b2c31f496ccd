"""
Domain enumerations.

Values are lowercase because they travel over the API as-is
("debt", "payment", "free", "pending", ...).
"""

import enum


class TransactionType(str, enum.Enum):
    """
    Transaction type enumeration.

    Types:
        DEBT: Increases what the customer owes
        PAYMENT: Decreases what the customer owes
    """
    DEBT = "debt"
    PAYMENT = "payment"


class SubscriptionPlan(str, enum.Enum):
    """Subscription tiers, cheapest first."""
    FREE = "free"
    BASIC = "basic"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    CANCELED = "canceled"
    PAST_DUE = "past_due"


class SyncStatus(str, enum.Enum):
    """Lifecycle of an offline sync queue item."""
    PENDING = "pending"  # Waiting to be replayed (or waiting for a retry)
    SYNCING = "syncing"  # Picked up by the processor
    SYNCED = "synced"  # Applied on the server
    FAILED = "failed"  # Gave up after max_retries


class SyncActionType(str, enum.Enum):
    """Mutations a client may queue while offline."""
    CREATE_CUSTOMER = "create_customer"
    UPDATE_CUSTOMER = "update_customer"
    DELETE_CUSTOMER = "delete_customer"
    CREATE_TRANSACTION = "create_transaction"
    UPDATE_TRANSACTION = "update_transaction"
    DELETE_TRANSACTION = "delete_transaction"


class CustomFieldType(str, enum.Enum):
    """Input kinds a merchant can add to the customer form."""
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SELECT = "select"
    TEXTAREA = "textarea"
    CHECKBOX = "checkbox"
