import time
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import (
    MinLengthValidator, MinValueValidator, RegexValidator,
)
from django.db import models
from django.utils import timezone


MAGANJO = "Maganjo"
MATUGGA = "Matugga"
BRANCH_CHOICES = [(MAGANJO, "Maganjo"), (MATUGGA, "Matugga")]
BRANCHES = {code for code, _ in BRANCH_CHOICES}

DIRECTOR    = "Director"
MANAGER     = "Manager"
SALES_AGENT = "Sales Agent"
ROLE_CHOICES = [(DIRECTOR, "Director"), (MANAGER, "Manager"), (SALES_AGENT, "Sales Agent")]


def produce_key(name) -> str:
    """Case-insensitive identity of a produce name within a branch."""
    return " ".join(str(name or "").split()).lower()


class Stamped(models.Model):
    """date_created / last_modified as unix seconds, stamped on every save()."""
    date_created  = models.BigIntegerField(editable=False, blank=True)
    last_modified = models.BigIntegerField(editable=False, blank=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        now = int(time.time())
        self.last_modified = now
        if not self.date_created:
            self.date_created = now
        return super().save(*args, **kwargs)


class Staff(Stamped):
    """
    A back-office user. Directors oversee every branch and never carry one;
    managers and sales agents are pinned to exactly one branch.
    """
    id = models.AutoField(primary_key=True)
    full_name = models.CharField(max_length=150, validators=[MinLengthValidator(2)])
    username  = models.CharField(max_length=150, unique=True, validators=[MinLengthValidator(2)])
    phone     = models.CharField(
        max_length=20,
        validators=[RegexValidator(r"^(\+256|0)[0-9]{9}$", "Invalid phone number format")],
    )
    role   = models.CharField(max_length=20, choices=ROLE_CHOICES)
    branch = models.CharField(max_length=20, choices=BRANCH_CHOICES, null=True, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "staff"
        indexes = [
            models.Index(fields=["role"],   name="idx_staff_role"),
            models.Index(fields=["branch"], name="idx_staff_branch"),
        ]

    # DRF permission classes look for these on request.user
    is_authenticated = True
    is_anonymous = False

    def __str__(self):
        return f"{self.username} ({self.role})"

    def clean(self):
        if self.role != DIRECTOR and not self.branch:
            raise ValidationError({"branch": "Managers and sales agents need a branch."})

    def save(self, *args, **kwargs):
        if self.role == DIRECTOR:
            self.branch = None
        return super().save(*args, **kwargs)


class StockItem(Stamped):
    """
    Quantity on hand and current selling price of one produce at one branch.
    Only the inventory ledger in services.py writes quantity / selling_price.
    """
    id = models.AutoField(primary_key=True)
    branch = models.CharField(max_length=20, choices=BRANCH_CHOICES)
    produce_name = models.CharField(max_length=100, validators=[MinLengthValidator(2)])
    produce_key  = models.CharField(max_length=100, editable=False, blank=True)
    produce_type = models.CharField(max_length=100, validators=[MinLengthValidator(2)])

    quantity      = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0"))  # kg
    selling_price = models.DecimalField(max_digits=14, decimal_places=2)                        # per kg

    last_updated_by = models.ForeignKey(
        "Staff", db_column="last_updated_by", on_delete=models.SET_NULL,
        null=True, blank=True, related_name="stock_updates",
    )

    class Meta:
        db_table = "stock"
        indexes = [
            models.Index(fields=["quantity"], name="idx_stock_quantity"),
        ]
        constraints = [
            models.UniqueConstraint(fields=["branch", "produce_key"], name="uq_stock_branch_produce"),
            models.CheckConstraint(condition=models.Q(quantity__gte=0), name="ck_stock_qty_nonnegative"),
            models.CheckConstraint(condition=models.Q(selling_price__gte=0), name="ck_stock_price_nonnegative"),
        ]

    def __str__(self):
        return f"{self.branch} | {self.produce_name} | {self.quantity} kg"

    def save(self, *args, **kwargs):
        self.produce_name = " ".join(self.produce_name.split())
        self.produce_key = produce_key(self.produce_name)
        return super().save(*args, **kwargs)


class Sale(Stamped):
    """A completed cash sale. Append-only."""
    id = models.AutoField(primary_key=True)
    produce_name = models.CharField(max_length=100, validators=[MinLengthValidator(2)])
    tonnage_kg   = models.DecimalField(max_digits=14, decimal_places=3, validators=[MinValueValidator(1)])
    unit_price   = models.DecimalField(max_digits=14, decimal_places=2)
    amount_paid  = models.DecimalField(max_digits=16, decimal_places=2, validators=[MinValueValidator(10000)])

    buyer_name       = models.CharField(max_length=150, validators=[MinLengthValidator(2)])
    sales_agent_name = models.CharField(max_length=150, validators=[MinLengthValidator(2)])
    branch = models.CharField(max_length=20, choices=BRANCH_CHOICES)
    recorded_by = models.ForeignKey(
        "Staff", db_column="recorded_by", on_delete=models.PROTECT,
        null=True, blank=True, related_name="cash_sales",
    )
    date = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "sales"
        indexes = [
            models.Index(fields=["branch"], name="idx_sales_branch"),
            models.Index(fields=["date"],   name="idx_sales_date"),
        ]


class CreditSale(Stamped):
    """Produce dispatched on credit. Only `status` may change after creation."""
    PENDING        = "Pending"
    PARTIALLY_PAID = "Partially Paid"
    PAID           = "Paid"
    STATUS_CHOICES = [(PENDING, "Pending"), (PARTIALLY_PAID, "Partially Paid"), (PAID, "Paid")]

    id = models.AutoField(primary_key=True)
    produce_name = models.CharField(max_length=100, validators=[MinLengthValidator(2)])
    tonnage_kg   = models.DecimalField(max_digits=14, decimal_places=3, validators=[MinValueValidator(1)])
    unit_price   = models.DecimalField(max_digits=14, decimal_places=2)
    amount_due   = models.DecimalField(max_digits=16, decimal_places=2, validators=[MinValueValidator(1)])

    buyer_name     = models.CharField(max_length=150, validators=[MinLengthValidator(2)])
    buyer_nin      = models.CharField(max_length=30, validators=[MinLengthValidator(6)])
    buyer_location = models.CharField(max_length=150, validators=[MinLengthValidator(2)])
    buyer_contact  = models.CharField(max_length=30)

    sales_agent_name = models.CharField(max_length=150, validators=[MinLengthValidator(2)])
    branch = models.CharField(max_length=20, choices=BRANCH_CHOICES)
    recorded_by = models.ForeignKey(
        "Staff", db_column="recorded_by", on_delete=models.PROTECT,
        null=True, blank=True, related_name="credit_sales",
    )

    due_date      = models.DateField()
    dispatch_date = models.DateTimeField(default=timezone.now)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING)
    date   = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "credit_sales"
        indexes = [
            models.Index(fields=["branch"], name="idx_credit_branch"),
            models.Index(fields=["status"], name="idx_credit_status"),
            models.Index(fields=["date"],   name="idx_credit_date"),
        ]


class Procurement(Stamped):
    """A purchase from a dealer. Append-only; feeds StockItem via the ledger."""
    id = models.AutoField(primary_key=True)
    produce_name = models.CharField(max_length=100, validators=[MinLengthValidator(2)])
    produce_type = models.CharField(
        max_length=100,
        validators=[
            MinLengthValidator(2),
            RegexValidator(r"^[A-Za-z\s]+$", "Produce type must contain letters only"),
        ],
    )
    tonnage = models.DecimalField(max_digits=14, decimal_places=3, validators=[MinValueValidator(100)])
    cost    = models.DecimalField(max_digits=16, decimal_places=2, validators=[MinValueValidator(10000)])

    dealer_name    = models.CharField(max_length=150, validators=[MinLengthValidator(2)])
    dealer_contact = models.CharField(
        max_length=20,
        validators=[RegexValidator(r"^\+?\d{10,15}$", "Invalid phone number format")],
    )
    branch = models.CharField(max_length=20, choices=BRANCH_CHOICES)
    selling_price = models.DecimalField(max_digits=14, decimal_places=2, validators=[MinValueValidator(0)])

    recorded_by = models.ForeignKey(
        "Staff", db_column="recorded_by", on_delete=models.PROTECT, related_name="procurements",
    )
    date = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "procurement"
        indexes = [
            models.Index(fields=["branch"], name="idx_proc_branch"),
            models.Index(fields=["date"],   name="idx_proc_date"),
        ]
