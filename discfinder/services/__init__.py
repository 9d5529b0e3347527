"""
Service layer: account registration, bootstrap grants, and the signup
identity linker.
"""

from .accounts import AccountError, authenticate, register_account
from .bootstrap import consume_bootstrap_grant, grant_bootstrap_admin, seed_bootstrap_grants
from .identity_linker import (
    LinkOutcome,
    LinkState,
    ReconciliationError,
    dismiss_reconciliation,
    link_new_identity,
    list_reconciliation_tasks,
    retry_reconciliation,
)

__all__ = [
    "AccountError",
    "LinkOutcome",
    "LinkState",
    "ReconciliationError",
    "authenticate",
    "consume_bootstrap_grant",
    "dismiss_reconciliation",
    "grant_bootstrap_admin",
    "link_new_identity",
    "list_reconciliation_tasks",
    "register_account",
    "retry_reconciliation",
    "seed_bootstrap_grants",
]
