"""Error types raised by the recurrence engine and its stores.

RuleFetchError is fatal for a run and propagates to the caller. The per-rule
errors are caught by the engine and reported in the RunSummary.
"""


class RecurrenceError(Exception):
    """Base class for scheduler errors."""


class RuleFetchError(RecurrenceError):
    """The due-rule query failed; no rules were processed."""


class RuleError(RecurrenceError):
    """A failure confined to a single rule."""

    stage = "rule"

    def __init__(self, rule_id: str, message: str):
        super().__init__(message)
        self.rule_id = rule_id


class RuleClaimError(RuleError):
    stage = "claim"


class TransactionPersistError(RuleError):
    stage = "insert"


class ScheduleAdvanceError(RuleError):
    stage = "advance"
