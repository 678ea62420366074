"""Repository layer for data access patterns."""

from finance_automation.repositories.account_repository import (
    AccountNotFoundError,
    AccountRepository,
)
from finance_automation.repositories.automation_rule_repository import (
    AutomationRuleNotFoundError,
    AutomationRuleRepository,
)
from finance_automation.repositories.transaction_repository import (
    TransactionNotFoundError,
    TransactionRepository,
)

__all__ = [
    "AccountNotFoundError",
    "AccountRepository",
    "AutomationRuleNotFoundError",
    "AutomationRuleRepository",
    "TransactionNotFoundError",
    "TransactionRepository",
]
