# trading/serializers.py

from rest_framework import serializers

from .models import BRANCH_CHOICES, CreditSale, Procurement, Sale, Staff, StockItem


# ============ Staff ============
class StaffSerializer(serializers.ModelSerializer):
    fullName = serializers.CharField(source="full_name")

    class Meta:
        model = Staff
        fields = ["id", "fullName", "username", "phone", "role", "branch"]


# ============ Price quote ============
class PriceQuoteQuerySerializer(serializers.Serializer):
    produceName = serializers.CharField(trim_whitespace=True)
    tonnageKg   = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=0)
    branch      = serializers.ChoiceField(choices=BRANCH_CHOICES, required=False)


class PriceQuoteSerializer(serializers.Serializer):
    produceName         = serializers.CharField()
    branch              = serializers.CharField()
    unitPrice           = serializers.DecimalField(max_digits=14, decimal_places=2, coerce_to_string=False)
    tonnageKg           = serializers.DecimalField(max_digits=14, decimal_places=3, coerce_to_string=False)
    amount              = serializers.DecimalField(max_digits=16, decimal_places=2, coerce_to_string=False)
    availableQuantityKg = serializers.DecimalField(max_digits=14, decimal_places=3, coerce_to_string=False)


# ============ Sales (Create) ============
# amountPaid / amountDue are accepted for old clients but ignored: the amount
# is always priced from stock.
class CashSaleInSerializer(serializers.Serializer):
    produceName    = serializers.CharField(source="produce_name")
    tonnageKg      = serializers.DecimalField(source="tonnage_kg", max_digits=14, decimal_places=3)
    buyerName      = serializers.CharField(source="buyer_name")
    salesAgentName = serializers.CharField(source="sales_agent_name", required=False, allow_blank=True)
    amountPaid     = serializers.DecimalField(max_digits=16, decimal_places=2, required=False, write_only=True)
    branch         = serializers.ChoiceField(choices=BRANCH_CHOICES, required=False)
    date           = serializers.DateTimeField(required=False)


class CreditSaleInSerializer(CashSaleInSerializer):
    amountPaid    = None
    amountDue     = serializers.DecimalField(max_digits=16, decimal_places=2, required=False, write_only=True)
    buyerNIN      = serializers.CharField(source="buyer_nin")
    buyerLocation = serializers.CharField(source="buyer_location")
    buyerContact  = serializers.CharField(source="buyer_contact")
    dueDate       = serializers.DateField(source="due_date")
    dispatchDate  = serializers.DateTimeField(source="dispatch_date", required=False)
    status        = serializers.ChoiceField(choices=CreditSale.STATUS_CHOICES, required=False)


class SaleSerializer(serializers.ModelSerializer):
    produceName    = serializers.CharField(source="produce_name")
    tonnageKg      = serializers.DecimalField(source="tonnage_kg", max_digits=14, decimal_places=3, coerce_to_string=False)
    unitPrice      = serializers.DecimalField(source="unit_price", max_digits=14, decimal_places=2, coerce_to_string=False)
    amountPaid     = serializers.DecimalField(source="amount_paid", max_digits=16, decimal_places=2, coerce_to_string=False)
    buyerName      = serializers.CharField(source="buyer_name")
    salesAgentName = serializers.CharField(source="sales_agent_name")
    recordedBy     = serializers.IntegerField(source="recorded_by_id", allow_null=True)

    class Meta:
        model = Sale
        fields = ["id", "produceName", "tonnageKg", "unitPrice", "amountPaid", "buyerName",
                  "salesAgentName", "branch", "recordedBy", "date"]


class CreditSaleSerializer(serializers.ModelSerializer):
    produceName    = serializers.CharField(source="produce_name")
    tonnageKg      = serializers.DecimalField(source="tonnage_kg", max_digits=14, decimal_places=3, coerce_to_string=False)
    unitPrice      = serializers.DecimalField(source="unit_price", max_digits=14, decimal_places=2, coerce_to_string=False)
    amountDue      = serializers.DecimalField(source="amount_due", max_digits=16, decimal_places=2, coerce_to_string=False)
    buyerName      = serializers.CharField(source="buyer_name")
    buyerNIN       = serializers.CharField(source="buyer_nin")
    buyerLocation  = serializers.CharField(source="buyer_location")
    buyerContact   = serializers.CharField(source="buyer_contact")
    salesAgentName = serializers.CharField(source="sales_agent_name")
    dueDate        = serializers.DateField(source="due_date")
    dispatchDate   = serializers.DateTimeField(source="dispatch_date")
    recordedBy     = serializers.IntegerField(source="recorded_by_id", allow_null=True)

    class Meta:
        model = CreditSale
        fields = ["id", "produceName", "tonnageKg", "unitPrice", "amountDue", "buyerName", "buyerNIN",
                  "buyerLocation", "buyerContact", "salesAgentName", "branch", "recordedBy",
                  "dueDate", "dispatchDate", "status", "date"]


# ============ Procurement ============
class ProcurementInSerializer(serializers.Serializer):
    produceName   = serializers.CharField(source="produce_name")
    produceType   = serializers.CharField(source="produce_type")
    tonnage       = serializers.DecimalField(max_digits=14, decimal_places=3)
    cost          = serializers.DecimalField(max_digits=16, decimal_places=2)
    dealerName    = serializers.CharField(source="dealer_name")
    dealerContact = serializers.CharField(source="dealer_contact")
    sellingPrice  = serializers.DecimalField(source="selling_price", max_digits=14, decimal_places=2)
    date          = serializers.DateTimeField(required=False)


class ProcurementSerializer(serializers.ModelSerializer):
    produceName   = serializers.CharField(source="produce_name")
    produceType   = serializers.CharField(source="produce_type")
    tonnage       = serializers.DecimalField(max_digits=14, decimal_places=3, coerce_to_string=False)
    cost          = serializers.DecimalField(max_digits=16, decimal_places=2, coerce_to_string=False)
    dealerName    = serializers.CharField(source="dealer_name")
    dealerContact = serializers.CharField(source="dealer_contact")
    sellingPrice  = serializers.DecimalField(source="selling_price", max_digits=14, decimal_places=2, coerce_to_string=False)
    recordedBy    = StaffSerializer(source="recorded_by", read_only=True)

    class Meta:
        model = Procurement
        fields = ["id", "produceName", "produceType", "tonnage", "cost", "dealerName",
                  "dealerContact", "branch", "sellingPrice", "recordedBy", "date"]


# ============ Stock ============
class StockItemSerializer(serializers.ModelSerializer):
    produceName  = serializers.CharField(source="produce_name")
    produceType  = serializers.CharField(source="produce_type")
    quantity     = serializers.DecimalField(max_digits=14, decimal_places=3, coerce_to_string=False)
    sellingPrice = serializers.DecimalField(source="selling_price", max_digits=14, decimal_places=2, coerce_to_string=False)

    class Meta:
        model = StockItem
        fields = ["id", "produceName", "produceType", "branch", "quantity", "sellingPrice"]
