"""Error types raised by the automation engine."""

from dataclasses import dataclass


class AutomationError(Exception):
    """Base class for automation engine errors."""

    pass


class RuleConfigurationError(AutomationError):
    """Raised when a stored rule cannot be compiled for evaluation.

    Covers regexes that fail to compile, inverted amount ranges, unknown
    condition or action keys and payloads of the wrong type. The engine never
    lets this escape a resolution: the offending rule is skipped and reported.
    """

    def __init__(self, rule_id: str, rule_name: str, reason: str) -> None:
        """Initialize the error.

        Args:
            rule_id: ID of the malformed rule.
            rule_name: Human-readable rule name.
            reason: What is wrong with the rule.
        """
        super().__init__(f"Rule '{rule_name}' (id={rule_id}) is malformed: {reason}")
        self.rule_id = rule_id
        self.rule_name = rule_name
        self.reason = reason


@dataclass(frozen=True)
class RuleIssue:
    """A rule (or rule action) skipped during evaluation, kept for operators."""

    rule_id: str | None
    rule_name: str
    reason: str

    @classmethod
    def from_error(cls, error: RuleConfigurationError) -> "RuleIssue":
        return cls(rule_id=error.rule_id, rule_name=error.rule_name, reason=error.reason)
