import pytest

from splitledger.app import create_app
from splitledger.config import TestingConfig
from splitledger.settlement import Expense


@pytest.fixture
def app():
    return create_app(TestingConfig)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def trip_expenses():
    return [
        Expense('Alice', 100.0, ['Alice', 'Bob', 'Carol'], description='Dinner', id='e1'),
        Expense('Bob', 60.0, ['Bob', 'Carol'], description='Taxi', id='e2'),
    ]
