"""Pydantic schemas for API request/response validation."""

from finance_automation.schemas.automation import (
    AppliedRuleResponse,
    AutomationRuleCreate,
    AutomationRuleListResponse,
    AutomationRuleResponse,
    DuplicateConflictResponse,
    GenerateAccountRulesResponse,
    OriginalValuesResponse,
    ResolvedFieldsResponse,
    ResolvePreviewResponse,
    RuleActions,
    RuleConditions,
    TransactionCandidateRequest,
    TransactionCreate,
    TransactionResponse,
)

__all__ = [
    "AppliedRuleResponse",
    "AutomationRuleCreate",
    "AutomationRuleListResponse",
    "AutomationRuleResponse",
    "DuplicateConflictResponse",
    "GenerateAccountRulesResponse",
    "OriginalValuesResponse",
    "ResolvedFieldsResponse",
    "ResolvePreviewResponse",
    "RuleActions",
    "RuleConditions",
    "TransactionCandidateRequest",
    "TransactionCreate",
    "TransactionResponse",
]
