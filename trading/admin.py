from django.contrib import admin
from .models import CreditSale, Procurement, Sale, Staff, StockItem


@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    list_display = ("id", "username", "full_name", "role", "branch", "is_active")
    list_filter = ("role", "branch", "is_active")
    search_fields = ("username", "full_name")


@admin.register(StockItem)
class StockItemAdmin(admin.ModelAdmin):
    list_display = ("id", "branch", "produce_name", "produce_type", "quantity", "selling_price")
    list_filter = ("branch",)
    search_fields = ("produce_name", "produce_type")
    # quantity and price only move through procurement and sales
    readonly_fields = ("quantity", "selling_price", "last_updated_by")


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = ("id", "date", "branch", "produce_name", "tonnage_kg", "amount_paid", "buyer_name")
    list_filter = ("branch",)


@admin.register(CreditSale)
class CreditSaleAdmin(admin.ModelAdmin):
    list_display = ("id", "date", "branch", "produce_name", "tonnage_kg", "amount_due", "due_date", "status")
    list_filter = ("branch", "status")


@admin.register(Procurement)
class ProcurementAdmin(admin.ModelAdmin):
    list_display = ("id", "date", "branch", "produce_name", "tonnage", "cost", "dealer_name")
    list_filter = ("branch",)
