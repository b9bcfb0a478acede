import time
from decimal import Decimal
from unittest import mock

import jwt
from django.db import DatabaseError

from trading.authentication import issue_token
from trading.models import MAGANJO, Procurement, Sale, StockItem

from .conftest import qty


# ============ authentication ============

def test_missing_token_is_401(client_for, db):
    res = client_for().get("/auth/me")
    assert res.status_code == 401


def test_expired_token_is_401(client_for, agent):
    client = client_for()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(agent, ttl=-60)}")

    res = client.get("/auth/me")

    assert res.status_code == 401
    assert res.data["detail"] == "Invalid or expired authentication token"


def test_forged_token_is_401(client_for, agent):
    now = int(time.time())
    forged = jwt.encode({"id": agent.pk, "role": "Director", "iat": now, "exp": now + 60},
                        "not-the-secret", algorithm="HS256")
    client = client_for()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {forged}")

    assert client.get("/auth/me").status_code == 401


def test_deactivated_staff_is_401(client_for, agent):
    client = client_for(agent)
    agent.is_active = False
    agent.save()
    assert client.get("/auth/me").status_code == 401


def test_me_reads_token_from_header_or_cookie(client_for, agent):
    res = client_for(agent).get("/auth/me")
    assert res.status_code == 200
    assert res.data["user"]["username"] == agent.username
    assert res.data["user"]["branch"] == MAGANJO

    client = client_for()
    client.cookies["token"] = issue_token(agent)
    assert client.get("/auth/me").status_code == 200


# ============ price quote ============

def test_price_quote(client_for, agent, stock):
    stock("Maize", 100, 2500)

    res = client_for(agent).get("/sales/price-quote", {"produceName": "Maize", "tonnageKg": "10"})

    assert res.status_code == 200
    assert res.data["quote"]["amount"] == Decimal("25000.00")
    assert res.data["quote"]["availableQuantityKg"] == Decimal("100")
    assert res.data["currency"] == "UGX"


def test_price_quote_unknown_produce_is_404(client_for, agent):
    res = client_for(agent).get("/sales/price-quote", {"produceName": "Sorghum", "tonnageKg": "10"})
    assert res.status_code == 404
    assert "Sorghum" in res.data["detail"]


def test_price_quote_zero_tonnage_is_400(client_for, agent, stock):
    stock("Maize", 100, 2500)
    res = client_for(agent).get("/sales/price-quote", {"produceName": "Maize", "tonnageKg": "0"})
    assert res.status_code == 400


def test_price_quote_is_for_sellers(client_for, director):
    res = client_for(director).get("/sales/price-quote", {"produceName": "Maize", "tonnageKg": "10"})
    assert res.status_code == 403


# ============ cash / credit sales ============

def test_cash_sale_201(client_for, agent, stock):
    maize = stock("Maize", 100, 2500)

    res = client_for(agent).post("/sales/cash", {
        "produceName": "Maize", "tonnageKg": 10, "buyerName": "Okello John", "amountPaid": 5,
    }, format="json")

    assert res.status_code == 201
    assert res.data["computedAmount"] == Decimal("25000.00")
    assert res.data["currency"] == "UGX"
    assert res.data["sale"]["amountPaid"] == Decimal("25000.00")
    assert res.data["remainingStockKg"] == Decimal("90")
    assert qty(maize) == Decimal("90")


def test_cash_sale_insufficient_stock_is_400(client_for, agent, stock):
    stock("Maize", 5, 2500)

    res = client_for(agent).post("/sales/cash", {
        "produceName": "Maize", "tonnageKg": 10, "buyerName": "Okello John",
    }, format="json")

    assert res.status_code == 400
    assert res.data["available"] == Decimal("5")
    assert res.data["requested"] == Decimal("10")
    assert "Insufficient stock" in res.data["detail"]


def test_cash_sale_below_minimum_is_400_and_restores_stock(client_for, agent, stock):
    maize = stock("Maize", 100, 2500)

    res = client_for(agent).post("/sales/cash", {
        "produceName": "Maize", "tonnageKg": 2, "buyerName": "Okello John",
    }, format="json")

    assert res.status_code == 400
    assert "amount_paid" in res.data["detail"]
    assert qty(maize) == Decimal("100")


def test_cash_sale_malformed_body_is_400(client_for, agent, stock):
    stock("Maize", 100, 2500)
    res = client_for(agent).post("/sales/cash", {"produceName": "Maize"}, format="json")
    assert res.status_code == 400
    assert not Sale.objects.exists()


def test_cash_sale_by_director_is_403(client_for, director, stock):
    maize = stock("Maize", 100, 2500)

    res = client_for(director).post("/sales/cash", {
        "produceName": "Maize", "tonnageKg": 10, "buyerName": "Okello John", "branch": MAGANJO,
    }, format="json")

    assert res.status_code == 403
    assert "Access denied" in res.data["detail"]
    assert qty(maize) == Decimal("100")


def test_cash_sale_storage_failure_is_500(client_for, agent, stock):
    maize = stock("Maize", 100, 2500)

    with mock.patch.object(Sale, "save", side_effect=DatabaseError("disk full")):
        res = client_for(agent).post("/sales/cash", {
            "produceName": "Maize", "tonnageKg": 10, "buyerName": "Okello John",
        }, format="json")

    assert res.status_code == 500
    assert res.data == {"detail": "Could not save the sale record."}
    assert qty(maize) == Decimal("100")


def test_credit_sale_201(client_for, agent, stock):
    stock("Maize", 100, 2500)

    res = client_for(agent).post("/sales/credit", {
        "produceName": "Maize", "tonnageKg": 20, "buyerName": "Okello John",
        "buyerNIN": "CM90012345ABCD", "buyerLocation": "Wakiso",
        "buyerContact": "0772000111", "dueDate": "2026-12-01",
    }, format="json")

    assert res.status_code == 201
    assert res.data["creditSale"]["status"] == "Pending"
    assert res.data["creditSale"]["amountDue"] == Decimal("50000.00")


# ============ procurement ============

PROCUREMENT = {
    "produceName": "Beans", "produceType": "Legume", "tonnage": 500, "cost": 1200000,
    "dealerName": "Kato Traders", "dealerContact": "0772123456", "sellingPrice": 3000,
}


def test_procurement_201(client_for, manager):
    res = client_for(manager).post("/procurement", PROCUREMENT, format="json")

    assert res.status_code == 201
    assert res.data["procurement"]["branch"] == MAGANJO
    assert res.data["procurement"]["recordedBy"]["username"] == manager.username
    assert res.data["stock"]["quantity"] == Decimal("500")


def test_procurement_by_agent_or_director_is_403(client_for, agent, director):
    for caller in (agent, director):
        res = client_for(caller).post("/procurement", dict(PROCUREMENT, branch=MAGANJO), format="json")
        assert res.status_code == 403
    assert not Procurement.objects.exists()


def test_procurement_validation_is_400(client_for, manager):
    res = client_for(manager).post("/procurement", dict(PROCUREMENT, tonnage=50), format="json")
    assert res.status_code == 400
    assert "tonnage" in res.data["detail"]
    assert not StockItem.objects.exists()


def test_procurement_stock_failure_is_500(client_for, manager):
    with mock.patch("trading.services.upsert", side_effect=DatabaseError("locked")):
        res = client_for(manager).post("/procurement", PROCUREMENT, format="json")

    assert res.status_code == 500
    assert "detail" in res.data
    assert not Procurement.objects.exists()


def test_role_is_checked_before_the_body(client_for, director, agent):
    director_client = client_for(director)
    for path in ("/sales/cash", "/sales/credit", "/procurement"):
        res = director_client.post(path, {}, format="json")
        assert res.status_code == 403, path
        assert "detail" in res.data

    assert director_client.post("/sales/cash", {"branch": MAGANJO}, format="json").status_code == 403
    assert client_for(agent).post("/procurement", {}, format="json").status_code == 403


def test_sale_write_without_token_is_401(client_for, db):
    assert client_for().post("/sales/cash", {}, format="json").status_code == 401
