"""SQLAlchemy models for the Finance Automation application."""

from finance_automation.models.account import Account
from finance_automation.models.automation_rule import AutomationRule
from finance_automation.models.transaction import Transaction

__all__ = [
    "Account",
    "AutomationRule",
    "Transaction",
]
