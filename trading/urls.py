# trading/urls.py
from django.urls import path

from .views import (
    cash_sale, credit_sale, me, price_quote, procurement, procurement_records,
    procurement_summary, sales_records, sales_summary, stock_alerts, stock_summary,
)

urlpatterns = [
    path("auth/me", me, name="auth-me"),

    path("sales/price-quote", price_quote, name="sales-price-quote"),
    path("sales/cash", cash_sale, name="sales-cash"),
    path("sales/credit", credit_sale, name="sales-credit"),
    path("sales/records", sales_records, name="sales-records"),
    path("sales/summary", sales_summary, name="sales-summary"),

    path("procurement", procurement, name="procurement"),
    path("procurement/records", procurement_records, name="procurement-records"),
    path("procurement/summary", procurement_summary, name="procurement-summary"),

    path("stock/summary", stock_summary, name="stock-summary"),
    path("stock/alerts", stock_alerts, name="stock-alerts"),
]
