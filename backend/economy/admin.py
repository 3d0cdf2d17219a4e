from django.contrib import admin

from .models import EconomyEvent, EconomyState


@admin.register(EconomyState)
class EconomyStateAdmin(admin.ModelAdmin):
    list_display = ("id", "total_minted", "total_burned", "reward_pool_balance",
                    "treasury_balance", "daily_emitted", "last_emission_reset")
    readonly_fields = ("max_supply", "total_minted", "total_burned",
                       "reward_pool_balance", "treasury_balance",
                       "daily_emitted", "last_emission_reset",
                       "created_at", "updated_at")

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(EconomyEvent)
class EconomyEventAdmin(admin.ModelAdmin):
    list_display = ("id", "event_type", "amount", "wallet", "description", "created_at")
    list_filter = ("event_type",)
    search_fields = ("wallet", "description")
    readonly_fields = ("event_type", "amount", "burn_amount", "reward_amount",
                       "treasury_amount", "wallet", "description", "metadata",
                       "created_at")
