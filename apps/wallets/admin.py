"""Admin registration for wallets."""

from __future__ import annotations

from django.contrib import admin

from .models import SavedPaymentMethod, Wallet, WalletTransaction


@admin.register(Wallet)
class WalletAdmin(admin.ModelAdmin):
    list_display = ("user_id", "balance", "currency", "updated_at")
    search_fields = ("user_id",)
    # Balances change only through the ledger
    readonly_fields = ("user_id", "balance", "currency", "created_at", "updated_at")


@admin.register(WalletTransaction)
class WalletTransactionAdmin(admin.ModelAdmin):
    list_display = ("id", "user_id", "kind", "amount", "description", "reference_id", "created_at")
    list_filter = ("kind",)
    search_fields = ("user_id", "reference_id")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(SavedPaymentMethod)
class SavedPaymentMethodAdmin(admin.ModelAdmin):
    list_display = ("user_id", "brand", "last4", "expiry", "created_at")
    search_fields = ("user_id", "last4")
    exclude = ("card_token",)
