from django.contrib import admin

from .models import RaceLog


@admin.register(RaceLog)
class RaceLogAdmin(admin.ModelAdmin):
    list_display = ("race_id", "wallet_address", "won", "base_reward", "np_earned",
                    "duration_ms", "raced_at")
    list_filter = ("won", "source")
    search_fields = ("race_id", "wallet_address", "car_id")
    readonly_fields = ("race_id", "wallet_address", "car_id", "source", "won",
                       "base_reward", "np_earned", "xp_earned", "duration_ms",
                       "raced_at")

    def has_add_permission(self, request):
        return False
