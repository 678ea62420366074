"""Business logic services."""

from finance_automation.services.account_rule_generator import (
    AccountDetectionRuleGenerator,
    AutomationRuleDraft,
)
from finance_automation.services.action_resolver import (
    ActionResolver,
    AppliedRule,
    OriginalValues,
    ResolvedTransaction,
)
from finance_automation.services.automation_engine import AutomationEngine
from finance_automation.services.condition_evaluator import (
    TransactionCandidate,
    matches,
)
from finance_automation.services.duplicate_guard import (
    DuplicateCheck,
    DuplicateGuard,
)
from finance_automation.services.rule_compiler import CompiledRule, compile_rule
from finance_automation.services.rule_selector import (
    INTENT_ACCOUNT_DETECTION,
    INTENT_GENERAL,
    RuleSelector,
    SelectionResult,
)
from finance_automation.services.transfer_linker import (
    TransferLinker,
    TransferRequest,
)

__all__ = [
    # Account Detection
    "AccountDetectionRuleGenerator",
    "AutomationRuleDraft",
    # Action Resolution
    "ActionResolver",
    "AppliedRule",
    "OriginalValues",
    "ResolvedTransaction",
    # Engine
    "AutomationEngine",
    # Conditions
    "TransactionCandidate",
    "matches",
    # Duplicate Guard
    "DuplicateCheck",
    "DuplicateGuard",
    # Compilation
    "CompiledRule",
    "compile_rule",
    # Selection
    "INTENT_ACCOUNT_DETECTION",
    "INTENT_GENERAL",
    "RuleSelector",
    "SelectionResult",
    # Transfers
    "TransferLinker",
    "TransferRequest",
]
