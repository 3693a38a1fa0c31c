from decimal import Decimal

import pytest

from database.db_manager import DatabaseManager
from database.recurring_dao import RecurringDAO
from database.transaction_dao import TransactionDAO
from services.recurrence_engine import RecurrenceEngine
from services.recurring_service import RecurringService


@pytest.fixture
def db():
    manager = DatabaseManager(":memory:")
    manager.initialize()
    yield manager
    manager.close()


@pytest.fixture
def rule_dao(db):
    return RecurringDAO(db)


@pytest.fixture
def tx_dao(db):
    return TransactionDAO(db)


@pytest.fixture
def service(rule_dao):
    return RecurringService(rule_dao)


@pytest.fixture
def engine(rule_dao, tx_dao):
    return RecurrenceEngine(rule_dao, tx_dao)


@pytest.fixture
def make_rule(rule_dao):
    def _make(**overrides):
        fields = {
            "owner_id": "user-1",
            "type_": "expense",
            "amount": Decimal("499"),
            "category": "subscriptions",
            "frequency": "monthly",
            "next_run_date": "2024-01-15",
            "description": "Streaming",
            "payment_method": "card",
            "is_active": True,
        }
        fields.update(overrides)
        return rule_dao.create(**fields)
    return _make
