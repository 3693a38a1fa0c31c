from datetime import date
from decimal import Decimal
from database.recurring_dao import RecurringDAO
from models.recurring_rule import RecurrenceRule
from utils.constants import CATEGORIES_BY_TYPE, FREQUENCIES, PAYMENT_METHODS
from utils.date_helpers import advance, format_date, parse_date, to_date
from utils.money import parse_amount


class RecurringService:
    def __init__(self, recurring_dao: RecurringDAO):
        self._dao = recurring_dao

    def get_all(self, owner_id: str | None = None) -> list[RecurrenceRule]:
        return self._dao.get_all(owner_id)

    def get_active(self) -> list[RecurrenceRule]:
        return self._dao.get_active()

    def get_by_id(self, rule_id: str) -> RecurrenceRule | None:
        return self._dao.get_by_id(rule_id)

    def create(
        self,
        owner_id: str,
        type_: str,
        amount,
        category: str,
        frequency: str,
        next_run_date: str,
        description: str | None = None,
        payment_method: str | None = None,
        is_active: bool = True,
    ) -> RecurrenceRule:
        if not owner_id:
            raise ValueError("Owner is required.")
        amount = self._validate(type_, amount, category, frequency, next_run_date, payment_method)
        return self._dao.create(
            owner_id=owner_id, type_=type_, amount=amount, category=category,
            frequency=frequency, next_run_date=format_date(parse_date(next_run_date)),
            description=description or None, payment_method=payment_method,
            is_active=is_active,
        )

    def update(
        self,
        rule_id: str,
        type_: str,
        amount,
        category: str,
        frequency: str,
        next_run_date: str,
        description: str | None = None,
        payment_method: str | None = None,
        is_active: bool = True,
    ) -> RecurrenceRule:
        if self._dao.get_by_id(rule_id) is None:
            raise ValueError(f"Recurring rule {rule_id} not found.")
        amount = self._validate(type_, amount, category, frequency, next_run_date, payment_method)
        return self._dao.update(
            rule_id=rule_id, type_=type_, amount=amount, category=category,
            frequency=frequency, next_run_date=format_date(parse_date(next_run_date)),
            description=description or None, payment_method=payment_method,
            is_active=is_active,
        )

    def set_active(self, rule_id: str, is_active: bool):
        self._dao.set_active(rule_id, is_active)

    def delete(self, rule_id: str):
        self._dao.delete(rule_id)

    def project_for_period(
        self,
        start_date: date | str,
        end_date: date | str,
        owner_id: str | None = None,
    ) -> list[dict]:
        """
        Return [{rule_id, date, amount, type, category}] for every upcoming
        occurrence of the active rules inside [start_date, end_date].
        Occurrences before a rule's next_run_date are never listed.
        """
        start = to_date(start_date)
        end = to_date(end_date)
        if start is None or end is None:
            raise ValueError("Invalid projection window.")

        result = []
        for rule in self._dao.get_active():
            if owner_id is not None and rule.owner_id != owner_id:
                continue
            current = parse_date(rule.next_run_date)
            while current is not None and current <= end:
                if current >= start:
                    result.append({
                        "rule_id": rule.id,
                        "date": format_date(current),
                        "amount": rule.amount,
                        "type": rule.type,
                        "category": rule.category,
                    })
                current = advance(current, rule.frequency)
        result.sort(key=lambda item: (item["date"], item["rule_id"]))
        return result

    def _validate(self, type_, amount, category, frequency, next_run_date, payment_method) -> Decimal:
        if type_ not in CATEGORIES_BY_TYPE:
            raise ValueError("Type must be income or expense.")
        value = parse_amount(amount)
        if not value.is_finite() or value <= 0:
            raise ValueError("Amount must be positive.")
        if category not in CATEGORIES_BY_TYPE[type_]:
            raise ValueError(f"Category '{category}' is not a valid {type_} category.")
        if frequency not in FREQUENCIES:
            raise ValueError("Invalid frequency.")
        if payment_method is not None and payment_method not in PAYMENT_METHODS:
            raise ValueError("Invalid payment method.")
        if not parse_date(next_run_date):
            raise ValueError("Invalid next run date.")
        return value
