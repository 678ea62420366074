"""FastAPI router for automation rules and rule-driven transaction creation."""

import dataclasses
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from finance_automation.db.session import DbSession, get_db
from finance_automation.repositories.account_repository import AccountRepository
from finance_automation.repositories.automation_rule_repository import (
    AutomationRuleRepository,
)
from finance_automation.repositories.transaction_repository import (
    TransactionNotFoundError,
    TransactionRepository,
)
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
    TransactionCandidateRequest,
    TransactionCreate,
    TransactionResponse,
)
from finance_automation.services.account_rule_generator import (
    AccountDetectionRuleGenerator,
)
from finance_automation.services.action_resolver import (
    AppliedRule,
    ResolvedTransaction,
)
from finance_automation.services.automation_engine import AutomationEngine
from finance_automation.services.condition_evaluator import TransactionCandidate
from finance_automation.services.duplicate_guard import DuplicateGuard

logger = logging.getLogger(__name__)

router = APIRouter()


def get_rule_repo(
    db: Session = Depends(get_db),  # noqa: B008
) -> AutomationRuleRepository:
    """Get automation rule repository."""
    return AutomationRuleRepository(db)


def get_account_repo(
    db: Session = Depends(get_db),  # noqa: B008
) -> AccountRepository:
    """Get account repository."""
    return AccountRepository(db)


def get_transaction_repo(
    db: Session = Depends(get_db),  # noqa: B008
) -> TransactionRepository:
    """Get transaction repository."""
    return TransactionRepository(db)


def get_engine() -> AutomationEngine:
    """Get automation engine."""
    return AutomationEngine()


def get_generator() -> AccountDetectionRuleGenerator:
    """Get account-detection rule generator."""
    return AccountDetectionRuleGenerator()


def _to_candidate(body: TransactionCandidateRequest) -> TransactionCandidate:
    return TransactionCandidate(
        description=body.description,
        amount=body.amount,
        type=body.type,
        source=body.source,
        raw_text=body.raw_text,
        account_id=body.account_id,
        category_id=body.category_id,
        transaction_date=body.transaction_date,
        transaction_time=body.transaction_time,
        notes=body.notes,
        transfer_to_account_id=body.transfer_to_account_id,
        transfer_id=body.transfer_id,
    )


def _applied_rules_response(resolved: ResolvedTransaction) -> list[AppliedRuleResponse]:
    return [
        AppliedRuleResponse(
            rule_id=applied.rule_id,
            rule_name=applied.rule_name,
            actions=applied.actions,
        )
        for applied in resolved.applied_rules
    ]


# --- Rule Endpoints ---


@router.get("/automation-rules", response_model=AutomationRuleListResponse)
async def list_rules(
    rule_repo: Annotated[AutomationRuleRepository, Depends(get_rule_repo)],
    rule_type: str | None = None,
    is_active: bool | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> AutomationRuleListResponse:
    """List automation rules, highest priority first."""
    rules, total = rule_repo.list_rules(
        rule_type=rule_type, is_active=is_active, page=page, limit=limit
    )
    return AutomationRuleListResponse(
        data=[AutomationRuleResponse.model_validate(r) for r in rules],
        count=total,
        page=page,
    )


@router.post(
    "/automation-rules",
    response_model=AutomationRuleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_rule(
    request: AutomationRuleCreate,
    db: DbSession,
    rule_repo: Annotated[AutomationRuleRepository, Depends(get_rule_repo)],
) -> AutomationRuleResponse:
    """Create an automation rule."""
    try:
        rule = rule_repo.create(
            name=request.name,
            conditions=request.conditions.model_dump(mode="json", exclude_none=True),
            actions=request.actions.model_dump(mode="json", exclude_none=True),
            priority=request.priority,
            rule_type=request.rule_type,
            condition_logic=request.condition_logic,
            is_active=request.is_active,
            prompt_text=request.prompt_text,
            match_phone=request.match_phone,
            transfer_to_account_id=request.transfer_to_account_id,
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account detection rule already exists for this account",
        ) from None
    return AutomationRuleResponse.model_validate(rule)


@router.post(
    "/automation-rules/generate-account-rules",
    response_model=GenerateAccountRulesResponse,
)
async def generate_account_rules(
    db: DbSession,
    rule_repo: Annotated[AutomationRuleRepository, Depends(get_rule_repo)],
    account_repo: Annotated[AccountRepository, Depends(get_account_repo)],
    generator: Annotated[AccountDetectionRuleGenerator, Depends(get_generator)],
) -> JSONResponse:
    """Create one account-detection rule for every uncovered account."""
    accounts = account_repo.get_active()
    drafts = generator.generate(
        accounts,
        rule_repo.get_all(),
        refresh_rules=rule_repo.get_all,
    )

    if not drafts:
        response = GenerateAccountRulesResponse(
            message=(
                "No rules to generate. Accounts are already covered or have "
                "no institution or last four digits set."
            ),
            created=0,
            data=[],
        )
        return JSONResponse(content=response.model_dump(mode="json"))

    try:
        created = rule_repo.bulk_create(drafts)
        db.commit()
    except IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Account rules were generated concurrently; retry",
        ) from None

    response = GenerateAccountRulesResponse(
        message=f"Generated {len(created)} account detection rules",
        created=len(created),
        data=[AutomationRuleResponse.model_validate(r) for r in created],
    )
    return JSONResponse(
        content=response.model_dump(mode="json"),
        status_code=status.HTTP_201_CREATED,
    )


@router.post("/automation-rules/resolve", response_model=ResolvePreviewResponse)
async def resolve_preview(
    request: TransactionCandidateRequest,
    rule_repo: Annotated[AutomationRuleRepository, Depends(get_rule_repo)],
    account_repo: Annotated[AccountRepository, Depends(get_account_repo)],
    engine: Annotated[AutomationEngine, Depends(get_engine)],
) -> ResolvePreviewResponse:
    """Preview the effect of automation rules on a candidate; nothing is saved."""
    resolved = engine.resolve(
        _to_candidate(request),
        rule_repo.get_active_by_priority(),
        known_account_ids=account_repo.get_existing_ids(),
    )
    return ResolvePreviewResponse(
        resolved=ResolvedFieldsResponse(
            account_id=resolved.account_id,
            category_id=resolved.category_id,
            type=resolved.type,
            notes=resolved.notes,
            is_reconciled=resolved.is_reconciled,
            transfer_to_account_id=resolved.transfer_to_account_id,
            transfer_id=resolved.transfer_id,
        ),
        original=OriginalValuesResponse(
            account_id=resolved.original.account_id,
            category_id=resolved.original.category_id,
        ),
        applied_rules=_applied_rules_response(resolved),
    )


# --- Transaction Endpoints ---


@router.post(
    "/transactions",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_409_CONFLICT: {"model": DuplicateConflictResponse}},
)
async def create_transaction(
    request: TransactionCreate,
    db: DbSession,
    rule_repo: Annotated[AutomationRuleRepository, Depends(get_rule_repo)],
    account_repo: Annotated[AccountRepository, Depends(get_account_repo)],
    transaction_repo: Annotated[TransactionRepository, Depends(get_transaction_repo)],
    engine: Annotated[AutomationEngine, Depends(get_engine)],
    force: bool = False,
    replace: str | None = None,
) -> TransactionResponse | JSONResponse:
    """Create a transaction after applying automation rules.

    A body that already carries applied_rules (an accepted preview) is not
    resolved again. Unless force or replace is given, a likely duplicate
    returns 409 with the existing transaction.
    """
    candidate = _to_candidate(request)
    known_account_ids = account_repo.get_existing_ids()

    if request.applied_rules:
        # Already resolved; only transfer linking is still pending
        resolved = engine.resolve(candidate, [], known_account_ids)
        resolved = dataclasses.replace(
            resolved,
            applied_rules=[
                AppliedRule(r.rule_id, r.rule_name, r.actions)
                for r in request.applied_rules
            ],
            is_reconciled=request.is_reconciled,
        )
    else:
        resolved = engine.resolve(
            candidate, rule_repo.get_active_by_priority(), known_account_ids
        )

    if resolved.account_id is None or resolved.account_id not in known_account_ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Transaction has no valid account after applying rules",
        )

    if not force and not replace:
        check = DuplicateGuard(transaction_repo).check(resolved)
        if check.is_conflict and check.match is not None:
            conflict = DuplicateConflictResponse(
                match=TransactionResponse.model_validate(check.match)
            )
            return JSONResponse(
                content=conflict.model_dump(mode="json"),
                status_code=status.HTTP_409_CONFLICT,
            )

    if replace:
        try:
            transaction_repo.soft_delete(replace)
        except TransactionNotFoundError as e:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail=str(e)
            ) from None
        logger.info("Replacing transaction %s", replace)

    transaction = transaction_repo.create_resolved(
        resolved, duplicate_status="confirmed" if force else None
    )
    db.commit()
    return TransactionResponse.model_validate(transaction)
