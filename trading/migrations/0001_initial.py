import decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Staff",
            fields=[
                ("date_created", models.BigIntegerField(blank=True, editable=False)),
                ("last_modified", models.BigIntegerField(blank=True, editable=False)),
                ("id", models.AutoField(primary_key=True, serialize=False)),
                ("full_name", models.CharField(max_length=150, validators=[django.core.validators.MinLengthValidator(2)])),
                ("username", models.CharField(max_length=150, unique=True, validators=[django.core.validators.MinLengthValidator(2)])),
                ("phone", models.CharField(max_length=20, validators=[django.core.validators.RegexValidator("^(\\+256|0)[0-9]{9}$", "Invalid phone number format")])),
                ("role", models.CharField(choices=[("Director", "Director"), ("Manager", "Manager"), ("Sales Agent", "Sales Agent")], max_length=20)),
                ("branch", models.CharField(blank=True, choices=[("Maganjo", "Maganjo"), ("Matugga", "Matugga")], max_length=20, null=True)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={
                "db_table": "staff",
                "indexes": [
                    models.Index(fields=["role"], name="idx_staff_role"),
                    models.Index(fields=["branch"], name="idx_staff_branch"),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockItem",
            fields=[
                ("date_created", models.BigIntegerField(blank=True, editable=False)),
                ("last_modified", models.BigIntegerField(blank=True, editable=False)),
                ("id", models.AutoField(primary_key=True, serialize=False)),
                ("branch", models.CharField(choices=[("Maganjo", "Maganjo"), ("Matugga", "Matugga")], max_length=20)),
                ("produce_name", models.CharField(max_length=100, validators=[django.core.validators.MinLengthValidator(2)])),
                ("produce_key", models.CharField(blank=True, editable=False, max_length=100)),
                ("produce_type", models.CharField(max_length=100, validators=[django.core.validators.MinLengthValidator(2)])),
                ("quantity", models.DecimalField(decimal_places=3, default=decimal.Decimal("0"), max_digits=14)),
                ("selling_price", models.DecimalField(decimal_places=2, max_digits=14)),
                ("last_updated_by", models.ForeignKey(blank=True, db_column="last_updated_by", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="stock_updates", to="trading.staff")),
            ],
            options={
                "db_table": "stock",
                "indexes": [
                    models.Index(fields=["quantity"], name="idx_stock_quantity"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("branch", "produce_key"), name="uq_stock_branch_produce"),
                    models.CheckConstraint(condition=models.Q(("quantity__gte", 0)), name="ck_stock_qty_nonnegative"),
                    models.CheckConstraint(condition=models.Q(("selling_price__gte", 0)), name="ck_stock_price_nonnegative"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Sale",
            fields=[
                ("date_created", models.BigIntegerField(blank=True, editable=False)),
                ("last_modified", models.BigIntegerField(blank=True, editable=False)),
                ("id", models.AutoField(primary_key=True, serialize=False)),
                ("produce_name", models.CharField(max_length=100, validators=[django.core.validators.MinLengthValidator(2)])),
                ("tonnage_kg", models.DecimalField(decimal_places=3, max_digits=14, validators=[django.core.validators.MinValueValidator(1)])),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=14)),
                ("amount_paid", models.DecimalField(decimal_places=2, max_digits=16, validators=[django.core.validators.MinValueValidator(10000)])),
                ("buyer_name", models.CharField(max_length=150, validators=[django.core.validators.MinLengthValidator(2)])),
                ("sales_agent_name", models.CharField(max_length=150, validators=[django.core.validators.MinLengthValidator(2)])),
                ("branch", models.CharField(choices=[("Maganjo", "Maganjo"), ("Matugga", "Matugga")], max_length=20)),
                ("date", models.DateTimeField(default=django.utils.timezone.now)),
                ("recorded_by", models.ForeignKey(blank=True, db_column="recorded_by", null=True, on_delete=django.db.models.deletion.PROTECT, related_name="cash_sales", to="trading.staff")),
            ],
            options={
                "db_table": "sales",
                "indexes": [
                    models.Index(fields=["branch"], name="idx_sales_branch"),
                    models.Index(fields=["date"], name="idx_sales_date"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CreditSale",
            fields=[
                ("date_created", models.BigIntegerField(blank=True, editable=False)),
                ("last_modified", models.BigIntegerField(blank=True, editable=False)),
                ("id", models.AutoField(primary_key=True, serialize=False)),
                ("produce_name", models.CharField(max_length=100, validators=[django.core.validators.MinLengthValidator(2)])),
                ("tonnage_kg", models.DecimalField(decimal_places=3, max_digits=14, validators=[django.core.validators.MinValueValidator(1)])),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=14)),
                ("amount_due", models.DecimalField(decimal_places=2, max_digits=16, validators=[django.core.validators.MinValueValidator(1)])),
                ("buyer_name", models.CharField(max_length=150, validators=[django.core.validators.MinLengthValidator(2)])),
                ("buyer_nin", models.CharField(max_length=30, validators=[django.core.validators.MinLengthValidator(6)])),
                ("buyer_location", models.CharField(max_length=150, validators=[django.core.validators.MinLengthValidator(2)])),
                ("buyer_contact", models.CharField(max_length=30)),
                ("sales_agent_name", models.CharField(max_length=150, validators=[django.core.validators.MinLengthValidator(2)])),
                ("branch", models.CharField(choices=[("Maganjo", "Maganjo"), ("Matugga", "Matugga")], max_length=20)),
                ("due_date", models.DateField()),
                ("dispatch_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("status", models.CharField(choices=[("Pending", "Pending"), ("Partially Paid", "Partially Paid"), ("Paid", "Paid")], default="Pending", max_length=20)),
                ("date", models.DateTimeField(default=django.utils.timezone.now)),
                ("recorded_by", models.ForeignKey(blank=True, db_column="recorded_by", null=True, on_delete=django.db.models.deletion.PROTECT, related_name="credit_sales", to="trading.staff")),
            ],
            options={
                "db_table": "credit_sales",
                "indexes": [
                    models.Index(fields=["branch"], name="idx_credit_branch"),
                    models.Index(fields=["status"], name="idx_credit_status"),
                    models.Index(fields=["date"], name="idx_credit_date"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Procurement",
            fields=[
                ("date_created", models.BigIntegerField(blank=True, editable=False)),
                ("last_modified", models.BigIntegerField(blank=True, editable=False)),
                ("id", models.AutoField(primary_key=True, serialize=False)),
                ("produce_name", models.CharField(max_length=100, validators=[django.core.validators.MinLengthValidator(2)])),
                ("produce_type", models.CharField(max_length=100, validators=[django.core.validators.MinLengthValidator(2), django.core.validators.RegexValidator("^[A-Za-z\\s]+$", "Produce type must contain letters only")])),
                ("tonnage", models.DecimalField(decimal_places=3, max_digits=14, validators=[django.core.validators.MinValueValidator(100)])),
                ("cost", models.DecimalField(decimal_places=2, max_digits=16, validators=[django.core.validators.MinValueValidator(10000)])),
                ("dealer_name", models.CharField(max_length=150, validators=[django.core.validators.MinLengthValidator(2)])),
                ("dealer_contact", models.CharField(max_length=20, validators=[django.core.validators.RegexValidator("^\\+?\\d{10,15}$", "Invalid phone number format")])),
                ("branch", models.CharField(choices=[("Maganjo", "Maganjo"), ("Matugga", "Matugga")], max_length=20)),
                ("selling_price", models.DecimalField(decimal_places=2, max_digits=14, validators=[django.core.validators.MinValueValidator(0)])),
                ("date", models.DateTimeField(default=django.utils.timezone.now)),
                ("recorded_by", models.ForeignKey(db_column="recorded_by", on_delete=django.db.models.deletion.PROTECT, related_name="procurements", to="trading.staff")),
            ],
            options={
                "db_table": "procurement",
                "indexes": [
                    models.Index(fields=["branch"], name="idx_proc_branch"),
                    models.Index(fields=["date"], name="idx_proc_date"),
                ],
            },
        ),
    ]
