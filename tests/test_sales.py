import datetime
import logging
from decimal import Decimal
from unittest import mock

import pytest
from django.core.exceptions import ValidationError
from django.db import DatabaseError

from trading.models import MATUGGA, CreditSale, Sale
from trading.services import (
    InsufficientStock, InvalidInput, StorageFailure, Unauthorized,
    record_cash_sale, record_credit_sale,
)

from .conftest import qty


def cash(**overrides):
    data = {"produce_name": "Maize", "tonnage_kg": Decimal("30"), "buyer_name": "Okello John"}
    data.update(overrides)
    return data


def credit(**overrides):
    data = cash(
        buyer_nin="CM90012345ABCD",
        buyer_location="Wakiso",
        buyer_contact="0772000111",
        due_date=datetime.date(2026, 12, 1),
    )
    data.update(overrides)
    return data


# ============ cash ============

def test_cash_sale_prices_from_stock(stock, agent):
    maize = stock("Maize", 100, 2500)

    res = record_cash_sale(agent, cash(amount_paid=Decimal("1")))

    assert res.amount == Decimal("75000.00")
    assert res.unit_price == Decimal("2500")
    assert res.remaining_kg == Decimal("70")
    sale = Sale.objects.get()
    assert sale.amount_paid == Decimal("75000.00")
    assert sale.branch == agent.branch
    assert sale.recorded_by_id == agent.pk
    assert sale.sales_agent_name == agent.username
    assert qty(maize) == Decimal("70")


def test_cash_sale_keeps_given_agent_name(stock, manager):
    stock("Maize", 100, 2500)
    res = record_cash_sale(manager, cash(sales_agent_name="Nakato Sarah"))
    assert res.record.sales_agent_name == "Nakato Sarah"


def test_cash_sale_uses_callers_branch_not_body(stock, agent):
    stock("Maize", 100, 2500, branch=MATUGGA)
    with pytest.raises(InsufficientStock):
        record_cash_sale(agent, cash(branch=MATUGGA))
    assert not Sale.objects.exists()


def test_insufficient_stock_records_nothing(stock, agent):
    maize = stock("Maize", 20, 2500)

    with pytest.raises(InsufficientStock):
        record_cash_sale(agent, cash())

    assert qty(maize) == Decimal("20")
    assert not Sale.objects.exists()


def test_bad_tonnage_is_invalid_input(stock, agent):
    stock("Maize", 100, 2500)
    with pytest.raises(InvalidInput):
        record_cash_sale(agent, cash(tonnage_kg=Decimal("-2")))


def test_director_cannot_record_sales(stock, director):
    maize = stock("Maize", 100, 2500)

    with pytest.raises(Unauthorized):
        record_cash_sale(director, cash(branch=maize.branch))
    with pytest.raises(Unauthorized):
        record_credit_sale(director, credit(branch=maize.branch))

    assert qty(maize) == Decimal("100")


# ============ compensation ============

def test_rejected_record_releases_reservation(stock, agent):
    # 3 kg at 2500 is below the 10,000 minimum sale
    maize = stock("Maize", 100, 2500)

    with pytest.raises(ValidationError) as exc:
        record_cash_sale(agent, cash(tonnage_kg=Decimal("3")))

    assert "amount_paid" in exc.value.message_dict
    assert qty(maize) == Decimal("100")
    assert not Sale.objects.exists()


def test_write_failure_releases_reservation(stock, agent, caplog):
    maize = stock("Maize", 100, 2500)

    with mock.patch.object(Sale, "save", side_effect=DatabaseError("disk full")):
        with pytest.raises(StorageFailure) as exc:
            record_cash_sale(agent, cash())

    assert isinstance(exc.value.__cause__, DatabaseError)
    assert qty(maize) == Decimal("100")
    assert any("released 30" in r.getMessage() for r in caplog.records)


def test_failed_release_does_not_hide_write_error(stock, agent, caplog):
    maize = stock("Maize", 100, 2500)
    caplog.set_level(logging.WARNING, logger="trading")

    with mock.patch.object(Sale, "save", side_effect=DatabaseError("disk full")), \
         mock.patch("trading.services.release", side_effect=DatabaseError("gone")) as release:
        with pytest.raises(StorageFailure):
            record_cash_sale(agent, cash())

    release.assert_called_once()
    # reservation stays taken and is left for reconciliation
    assert qty(maize) == Decimal("70")
    failed = [r for r in caplog.records if "manual reconciliation" in r.getMessage()]
    assert len(failed) == 1
    assert failed[0].levelno == logging.ERROR
    assert failed[0].exc_info is not None


# ============ credit ============

def test_credit_sale_defaults_to_pending(stock, agent):
    maize = stock("Maize", 100, 2500)

    res = record_credit_sale(agent, credit(amount_due=Decimal("5")))

    record = CreditSale.objects.get()
    assert record.status == CreditSale.PENDING
    assert record.amount_due == Decimal("75000.00")
    assert res.amount == record.amount_due
    assert record.buyer_nin == "CM90012345ABCD"
    assert qty(maize) == Decimal("70")


def test_credit_sale_takes_supplied_status(stock, manager):
    stock("Maize", 100, 2500)
    res = record_credit_sale(manager, credit(status=CreditSale.PARTIALLY_PAID))
    assert res.record.status == CreditSale.PARTIALLY_PAID


def test_invalid_credit_record_releases_reservation(stock, agent):
    maize = stock("Maize", 100, 2500)

    with pytest.raises(ValidationError) as exc:
        record_credit_sale(agent, credit(buyer_nin="123"))

    assert "buyer_nin" in exc.value.message_dict
    assert qty(maize) == Decimal("100")
    assert not CreditSale.objects.exists()


def test_unexpected_build_error_releases_reservation(stock, agent):
    maize = stock("Maize", 100, 2500)

    with pytest.raises(AttributeError):
        record_cash_sale(agent, cash(buyer_name=123))

    assert qty(maize) == Decimal("100")
    assert not Sale.objects.exists()


def test_unexpected_clean_error_releases_reservation(stock, agent):
    maize = stock("Maize", 100, 2500)

    with pytest.raises(TypeError):
        record_credit_sale(agent, credit(due_date=20261201))

    assert qty(maize) == Decimal("100")
    assert not CreditSale.objects.exists()
