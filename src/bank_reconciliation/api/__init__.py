"""HTTP API for the Bank Reconciliation Engine."""

from bank_reconciliation.api.app import create_app

__all__ = ["create_app"]
