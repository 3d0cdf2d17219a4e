from django.contrib import admin

from .models import BehaviorProfile


@admin.register(BehaviorProfile)
class BehaviorProfileAdmin(admin.ModelAdmin):
    list_display = ("wallet_address", "behavior_score", "risk_level", "penalty_tier",
                    "flagged", "blocked_until", "last_calculated_at")
    list_filter = ("risk_level", "penalty_tier", "flagged")
    search_fields = ("wallet_address",)
    readonly_fields = ("behavior_score", "interval_score", "variability_score",
                       "winrate_score", "pattern_score", "risk_level",
                       "reward_multiplier", "last_race_at", "last_calculated_at",
                       "created_at", "updated_at")
