import uuid
from decimal import Decimal

from django.db import migrations, models

import shared.infrastructure.fields


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Wallet",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("user_id", models.CharField(max_length=128, unique=True)),
                ("balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("currency", models.CharField(default="NZD", max_length=3)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Wallet",
                "verbose_name_plural": "Wallets",
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(balance__gte=0),
                        name="wallet_balance_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="WalletTransaction",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("user_id", models.CharField(max_length=128)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("kind", models.CharField(choices=[("credit", "Credit"), ("debit", "Debit")], max_length=8)),
                ("description", models.CharField(max_length=255)),
                (
                    "reference_id",
                    models.CharField(blank=True, help_text="Booking id or external charge id.", max_length=100),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name": "Wallet transaction",
                "verbose_name_plural": "Wallet transactions",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["user_id", "created_at"], name="wallet_txn_user_idx"),
                    models.Index(fields=["reference_id"], name="wallet_txn_reference_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=(
                            models.Q(kind="credit", amount__gt=0) | models.Q(kind="debit", amount__lt=0)
                        ),
                        name="wallet_txn_sign_matches_kind",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="SavedPaymentMethod",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("user_id", models.CharField(max_length=128)),
                ("brand", models.CharField(max_length=20)),
                ("last4", models.CharField(max_length=4)),
                ("expiry", models.CharField(help_text="MM/YY", max_length=5)),
                ("holder_name", models.CharField(max_length=100)),
                (
                    "card_token",
                    shared.infrastructure.fields.EncryptedTextField(
                        help_text="Opaque token issued by the payment provider."
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Saved payment method",
                "verbose_name_plural": "Saved payment methods",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["user_id"], name="payment_method_user_idx"),
                ],
            },
        ),
    ]
