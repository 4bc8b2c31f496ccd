"""
API Router.

Aggregates all API endpoints.
"""

from fastapi import APIRouter
from ledgerly.app.api.v1.endpoints import (
    auth, customers, transactions, subscription, config,
    dashboard, user_profiles, sync, export, custom_fields
)

router = APIRouter()

router.include_router(auth.router)

# Ledger
router.include_router(customers.router)
router.include_router(custom_fields.router)
router.include_router(transactions.router)
router.include_router(dashboard.router)
router.include_router(export.router)

# Plans and settings
router.include_router(subscription.router)
router.include_router(config.router)
router.include_router(user_profiles.router)

# Offline replay
router.include_router(sync.router)
