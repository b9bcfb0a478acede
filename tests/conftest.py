from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from trading.authentication import issue_token
from trading.models import DIRECTOR, MAGANJO, MANAGER, MATUGGA, SALES_AGENT, Staff, StockItem


def make_staff(username, role, branch=None):
    return Staff.objects.create(
        full_name=username.replace("_", " ").title(),
        username=username,
        phone="0701234567",
        role=role,
        branch=branch,
    )


@pytest.fixture
def director(db):
    return make_staff("orban_director", DIRECTOR)


@pytest.fixture
def manager(db):
    return make_staff("maganjo_manager", MANAGER, MAGANJO)


@pytest.fixture
def agent(db):
    return make_staff("maganjo_agent", SALES_AGENT, MAGANJO)


@pytest.fixture
def matugga_manager(db):
    return make_staff("matugga_manager", MANAGER, MATUGGA)


@pytest.fixture
def stock(db):
    """stock(name, qty, price, branch=Maganjo) -> StockItem"""
    def _make(name, quantity, price, branch=MAGANJO, produce_type="Grain"):
        return StockItem.objects.create(
            branch=branch, produce_name=name, produce_type=produce_type,
            quantity=Decimal(str(quantity)), selling_price=Decimal(str(price)),
        )
    return _make


@pytest.fixture
def client_for():
    """APIClient carrying a real bearer token for `staff` (or none)."""
    def _client(staff=None):
        client = APIClient()
        if staff is not None:
            client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(staff)}")
        return client
    return _client


def qty(item):
    item.refresh_from_db()
    return item.quantity
