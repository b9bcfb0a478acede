# trading/views.py
# ============================================================
# Imports
# ============================================================
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db.models import Avg, Count, DecimalField, ExpressionWrapper, F, Min, Sum

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .models import DIRECTOR, CreditSale, Procurement, Sale, StockItem
from .permissions import (
    HasBranchOrIsDirector, IsDirector, IsDirectorOrManager, IsManager, IsManagerOrAgent,
)
from .serializers import (
    CashSaleInSerializer, CreditSaleInSerializer, CreditSaleSerializer, PriceQuoteQuerySerializer,
    PriceQuoteSerializer, ProcurementInSerializer, ProcurementSerializer, SaleSerializer,
    StaffSerializer, StockItemSerializer,
)
from .services import (
    InsufficientStock, TradingError, quote_sale_amount, record_cash_sale,
    record_credit_sale, record_procurement, resolve_scope,
)

ZERO = Decimal("0")


# --- helpers for this module ---
def _error(e: TradingError):
    body = {"detail": str(e)}
    if isinstance(e, InsufficientStock):
        body["available"] = e.available
        body["requested"] = e.requested
    return Response(body, status=e.status_code)


def _validation_error(e: ValidationError):
    if hasattr(e, "message_dict"):
        msg = "; ".join(f"{field}: {' '.join(msgs)}" for field, msgs in e.message_dict.items())
    else:
        msg = " ".join(e.messages)
    return Response({"detail": msg}, status=status.HTTP_400_BAD_REQUEST)


def _read_scope(request):
    """Directors see every branch unless they filter with ?branch=; others see their own."""
    user = request.user
    if user.role == DIRECTOR:
        branch = (request.GET.get("branch") or "").strip()
        return resolve_scope(user, branch) if branch else None
    return user.branch


def _dec(v) -> Decimal:
    return Decimal(v or 0)


# ============================================================
# Caller
# ============================================================
@api_view(["GET"])
@permission_classes([IsAuthenticated])
def me(request):
    """GET /auth/me"""
    return Response({"user": StaffSerializer(request.user).data})


# ============================================================
# Sales
# ============================================================
@api_view(["GET"])
@permission_classes([IsManagerOrAgent])
def price_quote(request):
    """
    GET /sales/price-quote?produceName=Maize&tonnageKg=10
    """
    s = PriceQuoteQuerySerializer(data=request.query_params)
    s.is_valid(raise_exception=True)
    data = s.validated_data
    try:
        branch = resolve_scope(request.user, data.get("branch"))
        q = quote_sale_amount(branch, data["produceName"], data["tonnageKg"])
    except TradingError as e:
        return _error(e)
    return Response({"message": "Price quote generated", "currency": settings.DEFAULT_CURRENCY,
                     "quote": PriceQuoteSerializer(q).data})


@api_view(["POST"])
@permission_classes([IsManagerOrAgent])
def cash_sale(request):
    """
    POST /sales/cash
    { "produceName": "Maize", "tonnageKg": 10, "buyerName": "Okello", "date": "..." (optional) }
    """
    s = CashSaleInSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    try:
        res = record_cash_sale(request.user, s.validated_data)
    except TradingError as e:
        return _error(e)
    except ValidationError as e:
        return _validation_error(e)

    return Response({
        "message": "Cash sale recorded successfully",
        "sale": SaleSerializer(res.record).data,
        "unitPrice": res.unit_price,
        "computedAmount": res.amount,
        "currency": settings.DEFAULT_CURRENCY,
        "remainingStockKg": res.remaining_kg,
    }, status=status.HTTP_201_CREATED)


@api_view(["POST"])
@permission_classes([IsManagerOrAgent])
def credit_sale(request):
    """
    POST /sales/credit
    { "produceName", "tonnageKg", "buyerName", "buyerNIN", "buyerLocation",
      "buyerContact", "dueDate", "status" (optional) }
    """
    s = CreditSaleInSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    try:
        res = record_credit_sale(request.user, s.validated_data)
    except TradingError as e:
        return _error(e)
    except ValidationError as e:
        return _validation_error(e)

    return Response({
        "message": "Credit sale recorded successfully",
        "creditSale": CreditSaleSerializer(res.record).data,
        "unitPrice": res.unit_price,
        "computedAmount": res.amount,
        "currency": settings.DEFAULT_CURRENCY,
        "remainingStockKg": res.remaining_kg,
    }, status=status.HTTP_201_CREATED)


@api_view(["GET"])
@permission_classes([HasBranchOrIsDirector])
def sales_records(request):
    """
    GET /sales/records?type=all|cash|credit[&branch=Maganjo]
    """
    kind = request.GET.get("type", "all")
    if kind not in ("all", "cash", "credit"):
        return Response({"detail": "Invalid type. Use all, cash, or credit."}, status=400)
    try:
        branch = _read_scope(request)
    except TradingError as e:
        return _error(e)

    cash = Sale.objects.none() if kind == "credit" else Sale.objects.all()
    credit = CreditSale.objects.none() if kind == "cash" else CreditSale.objects.all()
    if branch:
        cash = cash.filter(branch=branch)
        credit = credit.filter(branch=branch)

    return Response({
        "message": "Sales records fetched successfully",
        "filters": {"type": kind, "branch": branch or "all"},
        "cashSales": SaleSerializer(cash.order_by("-date", "-id"), many=True).data,
        "creditSales": CreditSaleSerializer(credit.order_by("-date", "-id"), many=True).data,
    })


@api_view(["GET"])
@permission_classes([IsDirector])
def sales_summary(request):
    """GET /sales/summary  (aggregated cash/credit totals per branch)"""
    cash_rows = (Sale.objects.values("branch")
                 .annotate(salesCount=Count("id"),
                           totalCashAmount=Sum("amount_paid"),
                           totalTonnageKg=Sum("tonnage_kg"))
                 .order_by("branch"))
    credit_rows = (CreditSale.objects.values("branch")
                   .annotate(creditSalesCount=Count("id"),
                             totalCreditAmountDue=Sum("amount_due"),
                             totalCreditTonnageKg=Sum("tonnage_kg"))
                   .order_by("branch"))

    return Response({
        "message": "Aggregated sales totals fetched successfully",
        "cashByBranch": [
            {"branch": r["branch"], "salesCount": r["salesCount"],
             "totalCashAmount": _dec(r["totalCashAmount"]), "totalTonnageKg": _dec(r["totalTonnageKg"])}
            for r in cash_rows
        ],
        "creditByBranch": [
            {"branch": r["branch"], "creditSalesCount": r["creditSalesCount"],
             "totalCreditAmountDue": _dec(r["totalCreditAmountDue"]),
             "totalCreditTonnageKg": _dec(r["totalCreditTonnageKg"])}
            for r in credit_rows
        ],
    })


# ============================================================
# Procurement
# ============================================================
@api_view(["POST"])
@permission_classes([IsManager])
def procurement(request):
    """
    POST /procurement
    { "produceName", "produceType", "tonnage", "cost", "dealerName",
      "dealerContact", "sellingPrice", "date" (optional) }
    """
    s = ProcurementInSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    try:
        res = record_procurement(request.user, s.validated_data)
    except TradingError as e:
        return _error(e)
    except ValidationError as e:
        return _validation_error(e)

    return Response({
        "message": "Procurement recorded and stock updated successfully",
        "procurement": ProcurementSerializer(res.record).data,
        "stock": StockItemSerializer(res.stock).data,
    }, status=status.HTTP_201_CREATED)


@api_view(["GET"])
@permission_classes([IsDirectorOrManager, HasBranchOrIsDirector])
def procurement_records(request):
    """GET /procurement/records  (Director: all branches, Manager: own branch)"""
    qs = Procurement.objects.select_related("recorded_by").order_by("-date", "-id")
    if request.user.role != DIRECTOR:
        qs = qs.filter(branch=request.user.branch)

    return Response({
        "message": "Procurement records fetched successfully",
        "scope": "all" if request.user.role == DIRECTOR else request.user.branch,
        "records": ProcurementSerializer(qs, many=True).data,
    })


@api_view(["GET"])
@permission_classes([IsDirectorOrManager, HasBranchOrIsDirector])
def procurement_summary(request):
    """GET /procurement/summary"""
    qs = Procurement.objects.all()
    if request.user.role != DIRECTOR:
        qs = qs.filter(branch=request.user.branch)

    per_kg = ExpressionWrapper(F("cost") / F("tonnage"),
                               output_field=DecimalField(max_digits=16, decimal_places=2))
    by_branch = (qs.values("branch")
                 .annotate(procurementCount=Count("id"), totalTonnageKg=Sum("tonnage"),
                           totalCost=Sum("cost"), averageCostPerKg=Avg(per_kg))
                 .order_by("branch"))
    by_produce = (qs.values("produce_name")
                  .annotate(totalTonnageKg=Sum("tonnage"), totalCost=Sum("cost"),
                            averageBuyingPricePerKg=Avg(per_kg),
                            averageSellingPrice=Avg("selling_price"))
                  .order_by("-totalCost"))

    summary_by_branch = [
        {"branch": r["branch"], "procurementCount": r["procurementCount"],
         "totalTonnageKg": _dec(r["totalTonnageKg"]), "totalCost": _dec(r["totalCost"]),
         "averageCostPerKg": round(_dec(r["averageCostPerKg"]), 2)}
        for r in by_branch
    ]
    totals = {
        "totalProcurements": sum(r["procurementCount"] for r in summary_by_branch),
        "totalTonnageKg": sum((r["totalTonnageKg"] for r in summary_by_branch), ZERO),
        "totalCost": sum((r["totalCost"] for r in summary_by_branch), ZERO),
    }

    return Response({
        "message": "Procurement summary fetched successfully",
        "scope": "all" if request.user.role == DIRECTOR else request.user.branch,
        "totals": totals,
        "summaryByBranch": summary_by_branch,
        "summaryByProduce": [
            {"produceName": r["produce_name"], "totalTonnageKg": _dec(r["totalTonnageKg"]),
             "totalCost": _dec(r["totalCost"]),
             "averageBuyingPricePerKg": round(_dec(r["averageBuyingPricePerKg"]), 2),
             "averageSellingPrice": round(_dec(r["averageSellingPrice"]), 2)}
            for r in by_produce
        ],
    })


# ============================================================
# Stock
# ============================================================
def _stock_scope(request):
    qs = StockItem.objects.all()
    if request.user.role != DIRECTOR:
        qs = qs.filter(branch=request.user.branch)
    return qs


@api_view(["GET"])
@permission_classes([IsDirectorOrManager, HasBranchOrIsDirector])
def stock_summary(request):
    """GET /stock/summary"""
    threshold = settings.LOW_STOCK_THRESHOLD_KG
    qs = _stock_scope(request)

    value = ExpressionWrapper(F("quantity") * F("selling_price"),
                              output_field=DecimalField(max_digits=20, decimal_places=2))
    by_branch = (qs.values("branch")
                 .annotate(itemCount=Count("id"), totalQuantityKg=Sum("quantity"),
                           totalStockValue=Sum(value))
                 .order_by("branch"))
    by_produce = (qs.values("produce_key")
                  .annotate(produceName=Min("produce_name"), totalQuantityKg=Sum("quantity"),
                            averageSellingPrice=Avg("selling_price"),
                            branchCount=Count("branch", distinct=True))
                  .order_by("-totalQuantityKg"))
    low = qs.filter(quantity__lte=threshold).order_by("quantity")

    stock_by_branch = [
        {"branch": r["branch"], "itemCount": r["itemCount"],
         "totalQuantityKg": _dec(r["totalQuantityKg"]),
         "totalStockValue": _dec(r["totalStockValue"]).quantize(Decimal("0.01"))}
        for r in by_branch
    ]
    totals = {
        "totalItems": sum(r["itemCount"] for r in stock_by_branch),
        "totalQuantityKg": sum((r["totalQuantityKg"] for r in stock_by_branch), ZERO),
        "totalStockValue": sum((r["totalStockValue"] for r in stock_by_branch), ZERO),
    }

    return Response({
        "message": "Stock summary fetched successfully",
        "thresholdKg": threshold,
        "totals": totals,
        "stockByBranch": stock_by_branch,
        "stockByProduce": [
            {"produceName": r["produceName"], "totalQuantityKg": _dec(r["totalQuantityKg"]),
             "averageSellingPrice": round(_dec(r["averageSellingPrice"]), 2),
             "branchCount": r["branchCount"]}
            for r in by_produce
        ],
        "lowStockItems": StockItemSerializer(low, many=True).data,
    })


@api_view(["GET"])
@permission_classes([IsDirectorOrManager, HasBranchOrIsDirector])
def stock_alerts(request):
    """GET /stock/alerts  (out_of_stock is critical, low_stock is a warning)"""
    threshold = settings.LOW_STOCK_THRESHOLD_KG
    rows = _stock_scope(request).filter(quantity__lte=threshold).order_by("quantity", "produce_name")

    alerts = []
    for r in rows:
        if r.quantity <= 0:
            kind, severity = "out_of_stock", "critical"
            msg = f"{r.produce_name} is out of stock at {r.branch}."
        else:
            kind, severity = "low_stock", "warning"
            msg = f"{r.produce_name} is low at {r.branch}: {r.quantity.normalize():f} KG left (threshold {threshold} KG)."
        alerts.append({
            "type": kind,
            "severity": severity,
            "produceName": r.produce_name,
            "branch": r.branch,
            "quantityKg": r.quantity,
            "message": msg,
        })

    return Response({
        "message": "Stock alerts fetched successfully",
        "thresholdKg": threshold,
        "totalAlerts": len(alerts),
        "criticalAlerts": sum(1 for a in alerts if a["severity"] == "critical"),
        "alerts": alerts,
    })
