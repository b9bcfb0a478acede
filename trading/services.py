# trading/services.py

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

from django.db import DatabaseError, transaction
from django.db.models import F

from .models import (
    BRANCHES, DIRECTOR, MANAGER, SALES_AGENT,
    CreditSale, Procurement, Sale, Staff, StockItem, produce_key,
)

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
GRAMS = Decimal("0.001")


# ================== Errors ==================

class TradingError(Exception):
    status_code = 400


class InvalidInput(TradingError):
    status_code = 400


class Unauthorized(TradingError):
    status_code = 403


class NotFound(TradingError):
    status_code = 404


class InsufficientStock(TradingError):
    status_code = 400

    def __init__(self, message: str, *, available: Optional[Decimal] = None,
                 requested: Optional[Decimal] = None):
        super().__init__(message)
        self.available = available
        self.requested = requested


class StorageFailure(TradingError):
    status_code = 500


# ================== Input helpers ==================

def _clean_name(produce_name) -> str:
    name = " ".join(str(produce_name or "").split())
    if not name:
        raise InvalidInput("produceName is required.")
    return name


def _positive_kg(tonnage_kg) -> Decimal:
    try:
        kg = Decimal(str(tonnage_kg))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidInput("tonnageKg must be a positive number.")
    if not kg.is_finite() or kg <= 0:
        raise InvalidInput("tonnageKg must be a positive number.")
    try:
        exact = kg == kg.quantize(GRAMS)
    except InvalidOperation:
        exact = False
    if not exact:
        raise InvalidInput("tonnageKg is limited to whole grams (3 decimal places).")
    return kg


def _money(value, field: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidInput(f"{field} must be a number.")
    if not amount.is_finite() or amount < 0:
        raise InvalidInput(f"{field} must be a non-negative number.")
    return amount


def _known_branch(branch) -> str:
    if branch not in BRANCHES:
        raise InvalidInput(f"Unknown branch '{branch}'.")
    return branch


def _now() -> int:
    return int(time.time())


# ================== Scope ==================

def resolve_scope(caller: Staff, requested_branch: Optional[str] = None) -> str:
    """
    Branch a caller acts on. Directors have no branch of their own and must
    name one; everyone else is pinned to their assigned branch.
    """
    if caller.role == DIRECTOR:
        branch = (requested_branch or "").strip() or None
    else:
        branch = caller.branch
    if not branch:
        raise InvalidInput("Branch is required.")
    return _known_branch(branch)


def _authorize(caller: Staff, allowed: tuple, action: str):
    if caller is None or caller.role not in allowed:
        raise Unauthorized(f"You are not allowed to {action}.")


# ================== Inventory Ledger ==================

@dataclass
class StockQuote:
    unit_price: Decimal
    available_quantity: Decimal


def _stock_rows(branch: str, name: str):
    return StockItem.objects.filter(branch=branch, produce_key=produce_key(name))


def reserve(branch: str, produce_name, tonnage_kg, acting_user: Optional[Staff] = None) -> StockItem:
    """
    Take `tonnage_kg` out of stock in a single conditional UPDATE. Two
    concurrent reservations against the same row are serialized by the
    database; the loser sees the decremented quantity and fails here.
    """
    branch = _known_branch(branch)
    name = _clean_name(produce_name)
    kg = _positive_kg(tonnage_kg)

    fields = {"quantity": F("quantity") - kg, "last_modified": _now()}
    if acting_user is not None:
        fields["last_updated_by"] = acting_user

    updated = _stock_rows(branch, name).filter(quantity__gte=kg).update(**fields)
    if not updated:
        current = _stock_rows(branch, name).only("quantity").first()
        if current is None:
            logger.warning("reserve: %s not stocked at %s", name, branch)
            raise InsufficientStock(
                f"{name} is not available in {branch} stock.", available=Decimal("0"), requested=kg,
            )
        logger.warning("reserve: %s at %s has %s kg, %s kg requested", name, branch, current.quantity, kg)
        raise InsufficientStock(
            f"Insufficient stock for {name} in {branch}: "
            f"{current.quantity} kg available, {kg} kg requested.",
            available=current.quantity, requested=kg,
        )
    return _stock_rows(branch, name).get()


def release(branch: str, produce_name, tonnage_kg) -> None:
    """Put reserved kilograms back. Compensation only."""
    branch = _known_branch(branch)
    name = _clean_name(produce_name)
    kg = _positive_kg(tonnage_kg)
    updated = _stock_rows(branch, name).update(quantity=F("quantity") + kg, last_modified=_now())
    if not updated:
        raise StorageFailure(f"Stock row for {name} in {branch} disappeared before release.")


@transaction.atomic
def upsert(branch: str, produce_name, produce_type, tonnage_kg, selling_price,
           acting_user: Optional[Staff] = None) -> StockItem:
    branch = _known_branch(branch)
    name = _clean_name(produce_name)
    kind = " ".join(str(produce_type or "").split())
    kg = _positive_kg(tonnage_kg)
    price = _money(selling_price, "sellingPrice")

    stock = _stock_rows(branch, name).select_for_update().first()
    if stock is None:
        # the (branch, produce_key) unique constraint rejects a racing twin insert
        return StockItem.objects.create(
            branch=branch, produce_name=name, produce_type=kind,
            quantity=kg, selling_price=price, last_updated_by=acting_user,
        )

    stock.quantity = F("quantity") + kg
    stock.selling_price = price
    if kind:
        stock.produce_type = kind
    stock.last_updated_by = acting_user
    stock.save(update_fields=["quantity", "selling_price", "produce_type",
                              "last_updated_by", "last_modified"])
    stock.refresh_from_db(fields=["quantity"])
    return stock


def quote(branch: str, produce_name) -> StockQuote:
    branch = _known_branch(branch)
    name = _clean_name(produce_name)
    stock = _stock_rows(branch, name).only("quantity", "selling_price").first()
    if stock is None or stock.quantity <= 0:
        raise NotFound(f"No available stock for {name} in {branch}.")
    return StockQuote(unit_price=stock.selling_price, available_quantity=stock.quantity)


# ================== Pricing ==================

def line_amount(unit_price: Decimal, tonnage_kg: Decimal) -> Decimal:
    return (Decimal(unit_price) * Decimal(tonnage_kg)).quantize(CENTS, rounding=ROUND_HALF_UP)


def quote_sale_amount(branch: str, produce_name, tonnage_kg) -> dict:
    name = _clean_name(produce_name)
    kg = _positive_kg(tonnage_kg)
    q = quote(branch, name)
    return {
        "produceName": name,
        "branch": branch,
        "unitPrice": q.unit_price,
        "tonnageKg": kg,
        "amount": line_amount(q.unit_price, kg),
        "availableQuantityKg": q.available_quantity,
    }


# ================== Sale Reservation ==================

SALE_ROLES = (MANAGER, SALES_AGENT)


@dataclass
class SaleResult:
    record: object
    unit_price: Decimal
    amount: Decimal
    remaining_kg: Decimal


def _persist(record):
    """full_clean + save inside a savepoint so a failed insert leaves the connection usable."""
    record.full_clean()
    with transaction.atomic():
        record.save()
    return record


def _compensate_release(branch: str, name: str, kg: Decimal):
    try:
        release(branch, name, kg)
    except Exception:
        # stock now short by `kg`; operators reconcile from this log line
        logger.exception("release of %s kg %s at %s failed; stock needs manual reconciliation",
                         kg, name, branch)
    else:
        logger.warning("released %s kg %s at %s after failed sale write", kg, name, branch)


def _reserve_and_record(caller: Staff, data: dict, build, action: str) -> SaleResult:
    _authorize(caller, SALE_ROLES, action)
    branch = resolve_scope(caller, data.get("branch"))
    name = _clean_name(data.get("produce_name"))
    kg = _positive_kg(data.get("tonnage_kg"))

    stock = reserve(branch, name, kg, acting_user=caller)
    unit_price = stock.selling_price
    amount = line_amount(unit_price, kg)

    try:
        record = _persist(build(branch=branch, name=name, kg=kg, unit_price=unit_price, amount=amount))
    except DatabaseError as e:
        _compensate_release(branch, name, kg)
        raise StorageFailure("Could not save the sale record.") from e
    except Exception:
        # validation errors and anything else raised while building the record
        _compensate_release(branch, name, kg)
        raise

    return SaleResult(record=record, unit_price=unit_price, amount=amount, remaining_kg=stock.quantity)


def _agent_name(caller: Staff, data: dict) -> str:
    return (data.get("sales_agent_name") or "").strip() or caller.username


def record_cash_sale(caller: Staff, data: dict) -> SaleResult:
    """
    data: produce_name, tonnage_kg, buyer_name, [sales_agent_name], [date], [branch]
    amount_paid is always derived from stock, never taken from the caller.
    """
    def build(*, branch, name, kg, unit_price, amount):
        extra = {"date": data["date"]} if data.get("date") else {}
        return Sale(
            produce_name=name, tonnage_kg=kg, unit_price=unit_price, amount_paid=amount,
            buyer_name=(data.get("buyer_name") or "").strip(),
            sales_agent_name=_agent_name(caller, data),
            branch=branch, recorded_by=caller, **extra,
        )

    res = _reserve_and_record(caller, data, build, "record sales")
    logger.info("cash sale %s: %s kg %s at %s for %s by %s", res.record.pk, res.record.tonnage_kg,
                res.record.produce_name, res.record.branch, res.amount, caller.username)
    return res


def record_credit_sale(caller: Staff, data: dict) -> SaleResult:
    """
    data: produce_name, tonnage_kg, buyer_name, buyer_nin, buyer_location,
          buyer_contact, due_date, [status], [dispatch_date], [sales_agent_name], [date], [branch]
    """
    def build(*, branch, name, kg, unit_price, amount):
        extra = {k: data[k] for k in ("date", "dispatch_date") if data.get(k)}
        return CreditSale(
            produce_name=name, tonnage_kg=kg, unit_price=unit_price, amount_due=amount,
            buyer_name=(data.get("buyer_name") or "").strip(),
            buyer_nin=(data.get("buyer_nin") or "").strip(),
            buyer_location=(data.get("buyer_location") or "").strip(),
            buyer_contact=(data.get("buyer_contact") or "").strip(),
            due_date=data.get("due_date"),
            status=data.get("status") or CreditSale.PENDING,
            sales_agent_name=_agent_name(caller, data),
            branch=branch, recorded_by=caller, **extra,
        )

    res = _reserve_and_record(caller, data, build, "record credit sales")
    logger.info("credit sale %s: %s kg %s at %s, %s due by %s", res.record.pk, res.record.tonnage_kg,
                res.record.produce_name, res.record.branch, res.amount, res.record.due_date)
    return res


# ================== Procurement ==================

PROCUREMENT_ROLES = (MANAGER,)


@dataclass
class ProcurementResult:
    record: Procurement
    stock: StockItem


def record_procurement(caller: Staff, data: dict) -> ProcurementResult:
    """
    data: produce_name, produce_type, tonnage, cost, dealer_name,
          dealer_contact, selling_price, [date]
    Managers record for their own branch only; a `branch` in data is ignored.
    """
    _authorize(caller, PROCUREMENT_ROLES, "record procurement")
    branch = resolve_scope(caller)

    extra = {"date": data["date"]} if data.get("date") else {}
    record = Procurement(
        produce_name=" ".join(str(data.get("produce_name") or "").split()),
        produce_type=" ".join(str(data.get("produce_type") or "").split()),
        tonnage=data.get("tonnage"),
        cost=data.get("cost"),
        dealer_name=(data.get("dealer_name") or "").strip(),
        dealer_contact=(data.get("dealer_contact") or "").strip(),
        branch=branch,
        selling_price=data.get("selling_price"),
        recorded_by=caller,
        **extra,
    )
    try:
        _persist(record)
    except DatabaseError as e:
        raise StorageFailure("Could not save the procurement record.") from e

    try:
        stock = upsert(branch, record.produce_name, record.produce_type,
                       record.tonnage, record.selling_price, acting_user=caller)
    except DatabaseError as e:
        _discard_procurement(record, e)
        raise StorageFailure("Could not update stock for this procurement.") from e
    except Exception as e:
        _discard_procurement(record, e)
        raise

    logger.info("procurement %s: %s kg %s at %s, stock now %s kg", record.pk, record.tonnage,
                record.produce_name, branch, stock.quantity)
    return ProcurementResult(record=record, stock=stock)


def _discard_procurement(record: Procurement, cause: Exception):
    logger.warning("stock upsert failed for procurement %s (%s); deleting it", record.pk, cause)
    try:
        Procurement.objects.filter(pk=record.pk).delete()
    except Exception:
        logger.exception("could not delete orphaned procurement %s", record.pk)
