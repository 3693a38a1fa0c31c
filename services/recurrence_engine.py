"""Materializes due recurring rules into transactions.

One call to process_due_recurrences() is one run. Each due rule gets at most
one transaction per run, dated at the rule's current next_run_date, and its
schedule moves forward by exactly one period. A rule that is still due after
that (a run was missed) is picked up again by the next run.
"""
import logging
import uuid
from datetime import date

from database.stores import RuleStore, TransactionStore
from models.recurring_rule import RecurrenceRule
from models.run_summary import RuleFailure, RunSummary
from models.transaction import Transaction
from utils.date_helpers import advance, format_date, to_date, today
from utils.errors import (
    RuleClaimError,
    RuleError,
    RuleFetchError,
    ScheduleAdvanceError,
    TransactionPersistError,
)

logger = logging.getLogger(__name__)

CREATED = "created"
DUPLICATE = "duplicate"
STALE = "stale"


class RecurrenceEngine:
    def __init__(self, rule_store: RuleStore, tx_store: TransactionStore):
        self._rules = rule_store
        self._transactions = tx_store

    def process_due_recurrences(self, as_of_date: date | str | None = None) -> RunSummary:
        """Generate one transaction for every due active rule and advance it.

        Raises RuleFetchError if the due rules cannot be loaded. Failures of
        individual rules are reported in the returned RunSummary instead.
        """
        as_of = to_date(as_of_date) if as_of_date is not None else today()
        if as_of is None:
            raise ValueError(f"Invalid as-of date: {as_of_date!r}")

        run_id = uuid.uuid4().hex
        summary = RunSummary(as_of_date=format_date(as_of))
        logger.info("Processing recurring transactions for %s (run %s)", summary.as_of_date, run_id)

        try:
            rules = self._rules.find_due_active_rules(as_of)
        except Exception as exc:
            logger.error("Could not load due recurring rules: %s", exc)
            raise RuleFetchError(f"failed to load due rules: {exc}") from exc

        logger.info("Found %d recurring rules to process", len(rules))

        for rule in rules:
            try:
                outcome = self._process_rule(rule, run_id)
            except RuleError as exc:
                logger.error("Recurring rule %s failed at %s: %s", exc.rule_id, exc.stage, exc)
                summary.failed.append(RuleFailure(exc.rule_id, str(exc), exc.stage))
                continue
            except Exception as exc:
                logger.exception("Unexpected error processing recurring rule %s", rule.id)
                summary.failed.append(RuleFailure(rule.id, str(exc), RuleError.stage))
                continue
            if outcome == STALE:
                summary.skipped.append(rule.id)
                continue
            summary.processed.append(rule.id)
            if outcome == DUPLICATE:
                summary.skipped_duplicates.append(rule.id)

        if summary.failed:
            logger.warning(
                "Run %s finished: %d processed, %d failed",
                run_id, summary.processed_count, summary.failed_count,
            )
        else:
            logger.info("Run %s finished: %d processed", run_id, summary.processed_count)
        return summary

    def _process_rule(self, rule: RecurrenceRule, run_id: str) -> str:
        """Materialize and advance one rule; returns CREATED, DUPLICATE or STALE."""
        try:
            claimed = self._rules.claim(rule.id, run_id)
        except Exception as exc:
            raise RuleClaimError(rule.id, f"claim failed: {exc}") from exc
        if not claimed:
            raise RuleClaimError(rule.id, "rule is being processed by another run")

        try:
            if self._changed_since_fetch(rule):
                logger.info(
                    "Rule %s no longer due on %s, already handled by another run",
                    rule.id, rule.next_run_date,
                )
                return STALE
            return self._materialize(rule)
        finally:
            try:
                self._rules.release(rule.id, run_id)
            except Exception as exc:
                # The lease expires on its own; the rule stays processable.
                logger.warning("Could not release claim on rule %s: %s", rule.id, exc)

    def _changed_since_fetch(self, rule: RecurrenceRule) -> bool:
        try:
            current = self._rules.get_by_id(rule.id)
        except Exception as exc:
            raise RuleClaimError(rule.id, f"re-read after claim failed: {exc}") from exc
        return (
            current is None
            or not current.is_active
            or current.next_run_date != rule.next_run_date
        )

    def _materialize(self, rule: RecurrenceRule) -> str:
        current = to_date(rule.next_run_date)
        if current is None:
            raise TransactionPersistError(rule.id, f"invalid next_run_date {rule.next_run_date!r}")

        try:
            next_date = format_date(advance(current, rule.frequency))
        except ValueError as exc:
            raise ScheduleAdvanceError(rule.id, str(exc)) from exc

        tx = Transaction.from_rule(rule)
        try:
            created = self._transactions.insert_transaction(tx)
        except Exception as exc:
            raise TransactionPersistError(rule.id, f"transaction insert failed: {exc}") from exc
        if not created:
            logger.info(
                "Transaction for rule %s on %s already exists, advancing schedule only",
                rule.id, rule.next_run_date,
            )

        try:
            self._rules.update_next_run_date(rule.id, next_date, rule.next_run_date)
        except ScheduleAdvanceError:
            raise
        except Exception as exc:
            raise ScheduleAdvanceError(rule.id, f"next_run_date update failed: {exc}") from exc

        logger.debug("Processed rule %s, next run: %s", rule.id, next_date)
        return CREATED if created else DUPLICATE
