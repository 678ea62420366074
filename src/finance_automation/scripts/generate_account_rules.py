"""Generate account-detection rules for every account that lacks one."""

import argparse
import sys

from sqlalchemy.orm import Session

from finance_automation.db.session import session_scope
from finance_automation.repositories.account_repository import AccountRepository
from finance_automation.repositories.automation_rule_repository import (
    AutomationRuleRepository,
)
from finance_automation.services.account_rule_generator import (
    AccountDetectionRuleGenerator,
)


def _generate(db: Session, dry_run: bool, priority: int | None) -> int:
    rule_repo = AutomationRuleRepository(db)
    account_repo = AccountRepository(db)
    generator = AccountDetectionRuleGenerator(priority=priority)

    drafts = generator.generate(
        account_repo.get_active(),
        rule_repo.get_all(),
        refresh_rules=rule_repo.get_all,
    )
    for draft in drafts:
        keywords = ", ".join(draft.conditions["raw_text_contains"])
        print(f"  {draft.name} -> [{keywords}]")

    if dry_run:
        print(f"\nDry run: {len(drafts)} rules would be created")
        return len(drafts)

    if drafts:
        rule_repo.bulk_create(drafts)
    print(f"\nTotal rules created: {len(drafts)}")
    return len(drafts)


def generate_account_rules(
    db: Session | None = None,
    dry_run: bool = False,
    priority: int | None = None,
) -> int:
    """Generate and store account-detection rules.

    Args:
        db: Session to use. The caller commits. If None, a new session is
            opened and committed here.
        dry_run: If True, print the drafts without saving them.
        priority: Priority of generated rules (defaults to settings).

    Returns:
        Number of rules generated.
    """
    if db is not None:
        return _generate(db, dry_run, priority)
    with session_scope() as session:
        return _generate(session, dry_run, priority)


def main() -> int:
    """CLI entrypoint for the account rule generation script."""
    parser = argparse.ArgumentParser(
        description="Create account-detection rules for uncovered accounts."
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the rules that would be created without saving them",
    )
    parser.add_argument(
        "--priority",
        type=int,
        default=None,
        help="Priority of the generated rules",
    )

    args = parser.parse_args()

    try:
        generate_account_rules(dry_run=args.dry_run, priority=args.priority)
        return 0
    except Exception as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
