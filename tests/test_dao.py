from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from database.db_manager import DatabaseManager
from database.recurring_dao import RecurringDAO
from models.transaction import Transaction
from utils.errors import ScheduleAdvanceError


def test_find_due_active_rules_filters_and_orders(rule_dao, make_rule):
    later = make_rule(next_run_date="2024-01-10")
    earlier = make_rule(next_run_date="2024-01-05")
    make_rule(next_run_date="2024-01-06", is_active=False)
    make_rule(next_run_date="2024-02-01")
    on_the_day = make_rule(next_run_date="2024-01-20")

    due = rule_dao.find_due_active_rules(date(2024, 1, 20))

    assert [r.id for r in due] == [earlier.id, later.id, on_the_day.id]


def test_rule_amount_is_decimal(rule_dao, make_rule):
    rule = make_rule(amount=Decimal("12.50"))
    loaded = rule_dao.get_by_id(rule.id)
    assert loaded.amount == Decimal("12.50")
    assert isinstance(loaded.amount, Decimal)


def test_update_next_run_date(rule_dao, make_rule):
    rule = make_rule(next_run_date="2024-01-15")
    rule_dao.update_next_run_date(rule.id, "2024-02-15", expected="2024-01-15")
    assert rule_dao.get_by_id(rule.id).next_run_date == "2024-02-15"


def test_update_next_run_date_rejects_stale_expected(rule_dao, make_rule):
    rule = make_rule(next_run_date="2024-01-15")
    rule_dao.update_next_run_date(rule.id, "2024-02-15", expected="2024-01-15")

    with pytest.raises(ScheduleAdvanceError) as exc_info:
        rule_dao.update_next_run_date(rule.id, "2024-02-15", expected="2024-01-15")

    assert exc_info.value.rule_id == rule.id
    assert rule_dao.get_by_id(rule.id).next_run_date == "2024-02-15"


def test_update_next_run_date_rejects_regression(rule_dao, make_rule):
    rule = make_rule(next_run_date="2024-01-15")
    with pytest.raises(ScheduleAdvanceError):
        rule_dao.update_next_run_date(rule.id, "2024-01-15", expected="2024-01-15")
    with pytest.raises(ScheduleAdvanceError):
        rule_dao.update_next_run_date(rule.id, "2024-01-01", expected="2024-01-15")
    assert rule_dao.get_by_id(rule.id).next_run_date == "2024-01-15"


def test_claim_is_exclusive_until_released(rule_dao, make_rule):
    rule = make_rule()
    assert rule_dao.claim(rule.id, "run-a")
    assert rule_dao.claim(rule.id, "run-a")
    assert not rule_dao.claim(rule.id, "run-b")

    rule_dao.release(rule.id, "run-b")
    assert not rule_dao.claim(rule.id, "run-b")

    rule_dao.release(rule.id, "run-a")
    assert rule_dao.claim(rule.id, "run-b")


def test_stale_claim_can_be_taken_over(db, rule_dao, make_rule):
    rule = make_rule()
    assert rule_dao.claim(rule.id, "crashed-run")
    db.get_connection().execute(
        "UPDATE recurring_transactions SET claimed_at = '2000-01-01 00:00:00' WHERE id = ?",
        (rule.id,),
    )
    assert rule_dao.claim(rule.id, "run-b")


def test_claim_unknown_rule(rule_dao):
    assert not rule_dao.claim("missing", "run-a")


def test_insert_transaction_is_idempotent_per_rule_and_date(tx_dao, make_rule):
    rule = make_rule()
    first = Transaction.from_rule(rule)
    second = Transaction.from_rule(rule)
    assert first.id != second.id

    assert tx_dao.insert_transaction(first) is True
    assert tx_dao.insert_transaction(second) is False

    stored = tx_dao.get_by_rule(rule.id)
    assert [t.id for t in stored] == [first.id]
    assert stored[0].amount == Decimal("499")
    assert stored[0].is_recurring is True
    assert stored[0].date == "2024-01-15"


def test_manual_transactions_do_not_collide(tx_dao):
    for tx_id in ("a", "b"):
        tx = Transaction(
            id=tx_id, owner_id="user-1", type="expense", amount=Decimal("5"),
            category="food", date="2024-01-15",
        )
        assert tx_dao.insert_transaction(tx)
    assert len(tx_dao.get_all()) == 2


def test_get_by_owner_window(tx_dao, make_rule):
    rule = make_rule(frequency="daily")
    for day in ("2024-01-01", "2024-01-05", "2024-01-09"):
        tx_dao.insert_transaction(replace(Transaction.from_rule(rule), date=day))

    found = tx_dao.get_by_owner("user-1", start_date="2024-01-02", end_date="2024-01-09")
    assert [t.date for t in found] == ["2024-01-05", "2024-01-09"]
    assert tx_dao.get_by_owner("user-2") == []


def test_deleting_rule_keeps_its_transactions(rule_dao, tx_dao, make_rule):
    rule = make_rule()
    tx = Transaction.from_rule(rule)
    tx_dao.insert_transaction(tx)

    rule_dao.delete(rule.id)

    kept = tx_dao.get_by_id(tx.id)
    assert kept is not None
    assert kept.source_rule_id is None


def test_create_and_update_normalize_next_run_date(rule_dao, make_rule):
    rule = make_rule(next_run_date="2024/01/15")
    assert rule.next_run_date == "2024-01-15"
    assert [r.id for r in rule_dao.find_due_active_rules(date(2024, 1, 20))] == [rule.id]

    updated = rule_dao.update(
        rule.id, type_="expense", amount=Decimal("499"), category="subscriptions",
        frequency="monthly", next_run_date=date(2024, 3, 1),
    )
    assert updated.next_run_date == "2024-03-01"


def test_create_rejects_unparseable_next_run_date(rule_dao, make_rule):
    with pytest.raises(ValueError):
        make_rule(next_run_date="15 Jan")
    assert rule_dao.get_all() == []


def test_claim_is_exclusive_across_connections(tmp_path):
    path = str(tmp_path / "leases.db")
    db_a = DatabaseManager(path)
    db_a.initialize()
    db_b = DatabaseManager(path)
    dao_a = RecurringDAO(db_a)
    dao_b = RecurringDAO(db_b)
    rule = dao_a.create(
        owner_id="user-1", type_="expense", amount=Decimal("10"),
        category="food", frequency="daily", next_run_date="2024-01-01",
    )

    assert dao_a.claim(rule.id, "run-a")
    assert not dao_b.claim(rule.id, "run-b")

    dao_a.release(rule.id, "run-a")
    assert dao_b.claim(rule.id, "run-b")
    assert not dao_a.claim(rule.id, "run-a")
    db_a.close()
    db_b.close()
