"""Finance Automation: automation rule engine for the personal finance tracker."""

__version__ = "0.1.0"
