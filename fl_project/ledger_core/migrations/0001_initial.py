import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("account_number", models.PositiveIntegerField()),
                ("name", models.CharField(max_length=200)),
                ("account_type", models.CharField(choices=[("Asset", "Asset"), ("Liability", "Liability"), ("Equity", "Equity"), ("Income", "Income"), ("Expense", "Expense")], max_length=10)),
                ("description", models.TextField(blank=True, default="")),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("parent", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="children", to="ledger_core.account")),
                ("default_liability_account", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to="ledger_core.account")),
            ],
            options={
                "ordering": ["account_number"],
                "indexes": [models.Index(fields=["account_type", "is_active"], name="account_type_active_idx")],
                "constraints": [models.UniqueConstraint(fields=("account_number",), name="uq_account_number")],
            },
        ),
        migrations.CreateModel(
            name="Donor",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("phone", models.CharField(blank=True, default="", max_length=32)),
                ("address", models.TextField(blank=True, default="")),
                ("envelope_number", models.PositiveIntegerField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["name"],
                "constraints": [models.UniqueConstraint(condition=models.Q(("envelope_number__isnull", False)), fields=("envelope_number",), name="uq_donor_envelope_number")],
            },
        ),
        migrations.CreateModel(
            name="Fund",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True, default="")),
                ("is_restricted", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("net_asset_account", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="funds", to="ledger_core.account")),
            ],
            options={
                "ordering": ["name"],
                "constraints": [models.UniqueConstraint(fields=("name",), name="uq_fund_name")],
            },
        ),
        migrations.CreateModel(
            name="JournalEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("entry_date", models.DateField()),
                ("description", models.TextField()),
                ("reference_number", models.CharField(blank=True, default="", max_length=100)),
                ("is_in_kind", models.BooleanField(default=False)),
                ("is_voided", models.BooleanField(default=False)),
                ("voided_at", models.DateTimeField(blank=True, null=True)),
                ("voided_reason", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("donor", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="journal_entries", to="ledger_core.donor")),
                ("voided_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name_plural": "journal entries",
                "ordering": ["-entry_date", "-id"],
                "indexes": [
                    models.Index(fields=["entry_date"], name="je_entry_date_idx"),
                    models.Index(fields=["is_voided", "entry_date"], name="je_voided_date_idx"),
                ],
                "constraints": [models.CheckConstraint(condition=models.Q(("is_voided", False), models.Q(("voided_reason", ""), _negated=True), _connector="OR"), name="voided_entry_has_reason")],
            },
        ),
        migrations.CreateModel(
            name="LedgerLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("debit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("credit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("memo", models.CharField(blank=True, default="", max_length=255)),
                ("is_cleared", models.BooleanField(default=False)),
                ("cleared_at", models.DateTimeField(blank=True, null=True)),
                ("journal_entry", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="ledger_core.journalentry")),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="ledger_lines", to="ledger_core.account")),
                ("fund", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="ledger_lines", to="ledger_core.fund")),
            ],
            options={
                "ordering": ["id"],
                "indexes": [
                    models.Index(fields=["account", "is_cleared"], name="line_account_cleared_idx"),
                    models.Index(fields=["fund"], name="line_fund_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("debit__gte", 0)), name="ledgerline_debit_nonnegative"),
                    models.CheckConstraint(condition=models.Q(("credit__gte", 0)), name="ledgerline_credit_nonnegative"),
                    models.CheckConstraint(condition=models.Q(models.Q(("debit__gt", 0), ("credit", 0)), models.Q(("debit", 0), ("credit__gt", 0)), _connector="OR"), name="ledgerline_debit_xor_credit"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=50)),
                ("object_type", models.CharField(max_length=100)),
                ("object_id", models.CharField(max_length=100)),
                ("changes", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["object_type", "object_id"], name="audit_object_idx"),
                    models.Index(fields=["created_at"], name="audit_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Budget",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("fiscal_year", models.PositiveIntegerField()),
                ("budgeted_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("notes", models.TextField(blank=True, default="")),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="budgets", to="ledger_core.account")),
            ],
            options={
                "ordering": ["fiscal_year", "account__account_number"],
                "constraints": [
                    models.UniqueConstraint(fields=("account", "fiscal_year"), name="uq_budget_account_year"),
                    models.CheckConstraint(condition=models.Q(("budgeted_amount__gte", 0)), name="budget_amount_nonnegative"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Reconciliation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("statement_date", models.DateField()),
                ("statement_balance", models.DecimalField(decimal_places=2, max_digits=18)),
                ("reconciled_balance", models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ("status", models.CharField(choices=[("in_progress", "In progress"), ("completed", "Completed")], default="in_progress", max_length=20)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="reconciliations", to="ledger_core.account")),
                ("started_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-statement_date", "-id"],
                "constraints": [models.UniqueConstraint(condition=models.Q(("status", "in_progress")), fields=("account",), name="uq_in_progress_reconciliation_per_account")],
            },
        ),
        migrations.CreateModel(
            name="RecurringTemplate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("template_name", models.CharField(max_length=200)),
                ("description", models.TextField()),
                ("frequency", models.CharField(choices=[("weekly", "Weekly"), ("biweekly", "Every two weeks"), ("monthly", "Monthly"), ("quarterly", "Quarterly"), ("semiannually", "Every six months"), ("yearly", "Yearly")], max_length=20)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField(blank=True, null=True)),
                ("next_run_date", models.DateField()),
                ("last_run_date", models.DateField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("reference_number_prefix", models.CharField(blank=True, default="", max_length=50)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("fund", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="recurring_templates", to="ledger_core.fund")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["next_run_date", "id"],
                "indexes": [models.Index(fields=["is_active", "next_run_date"], name="recurring_active_next_idx")],
                "constraints": [models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="recurring_amount_positive")],
            },
        ),
        migrations.CreateModel(
            name="RecurringTemplateLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("debit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("credit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("memo", models.CharField(blank=True, default="", max_length=255)),
                ("line_order", models.PositiveSmallIntegerField(default=0)),
                ("template", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="ledger_core.recurringtemplate")),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="recurring_lines", to="ledger_core.account")),
            ],
            options={
                "ordering": ["line_order", "id"],
                "constraints": [models.CheckConstraint(condition=models.Q(models.Q(("debit__gt", 0), ("credit", 0)), models.Q(("debit", 0), ("credit__gt", 0)), _connector="OR"), name="recurringline_debit_xor_credit")],
            },
        ),
        migrations.CreateModel(
            name="RecurringHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("executed_date", models.DateField()),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("status", models.CharField(choices=[("success", "Success"), ("failed", "Failed")], max_length=10)),
                ("error_message", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("template", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="history", to="ledger_core.recurringtemplate")),
                ("journal_entry", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="recurring_history", to="ledger_core.journalentry")),
            ],
            options={
                "verbose_name_plural": "recurring history",
                "ordering": ["-executed_date", "-id"],
                "constraints": [models.CheckConstraint(condition=models.Q(("status", "success"), ("journal_entry__isnull", True), _connector="OR"), name="failed_history_has_no_entry")],
            },
        ),
        migrations.CreateModel(
            name="UserRole",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(choices=[("admin", "Admin"), ("bookkeeper", "Bookkeeper"), ("viewer", "Viewer")], default="viewer", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("user", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="ledger_role", to=settings.AUTH_USER_MODEL)),
            ],
        ),
    ]
