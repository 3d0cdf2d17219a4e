"""
Core app services — **Service Layer**.

Contains cross-app aggregation logic.  Views delegate all business logic
to the service classes defined here, keeping views thin and ensuring
testability.

╔══════════════════════════════════════════════════════════════════════╗
║  CROSS-APP IMPORT RULEBOOK                                         ║
║                                                                    ║
║  The core app is imported BY every other app, so it must never     ║
║  import their models at the **module level**.  Always import       ║
║  inside the method/function that needs them:                       ║
║                                                                    ║
║       from antibot.models import RiskLevel                         ║
║                                                                    ║
║  Following this rule guarantees no import cycles at any point.     ║
╚══════════════════════════════════════════════════════════════════════╝
"""

from __future__ import annotations

from typing import Any


# ════════════════════════════════════════════════════════════════════
#  System Constants Service
# ════════════════════════════════════════════════════════════════════

class SystemConstantsService:
    """
    Gathers all economy/risk enumerations and the active tunables into a
    single dict for the game client and the admin dashboard.

    This service is **stateless** — it does not depend on the requesting
    user.  All constants are public information the client needs to
    explain rewards (split percentages, risk tiers, caps).
    """

    @staticmethod
    def get_constants() -> dict[str, Any]:
        """Return all system constants as a dict."""
        from antibot.config import RiskConfig
        from antibot.models import PenaltyTier, RiskLevel
        from economy.config import EconomyConfig
        from economy.models import EconomyEventType, SustainabilityScore

        to_list = SystemConstantsService._choices_to_list
        economy = EconomyConfig.from_settings()
        risk = RiskConfig.from_settings()

        return {
            "risk_levels": to_list(RiskLevel),
            "penalty_tiers": to_list(PenaltyTier),
            "economy_event_types": to_list(EconomyEventType),
            "sustainability_scores": to_list(SustainabilityScore),
            "economy": {
                "max_supply": economy.max_supply,
                "burn_rate_percent": economy.burn_rate_percent,
                "reward_pool_rate_percent": economy.reward_pool_rate_percent,
                "treasury_rate_percent": economy.treasury_rate_percent,
                "base_daily_limit": economy.base_daily_limit,
                "min_daily_limit": economy.min_daily_limit,
                "decay_rate_percent": economy.decay_rate_percent,
            },
            "risk_policy": [
                {
                    "risk_level": level.value,
                    "min_score": risk.min_score(level),
                    "reward_multiplier": risk.multipliers[level.value],
                    "daily_cap": risk.daily_caps[level.value],
                    "cooldown_seconds": risk.cooldowns[level.value],
                }
                for level in RiskLevel
            ],
        }

    @staticmethod
    def _choices_to_list(
        choices_class: type,
    ) -> list[dict[str, str]]:
        """
        Convert a Django ``TextChoices`` or ``IntegerChoices`` class to
        a list of ``{"value": ..., "label": ...}`` dicts.
        """
        return [
            {"value": str(value), "label": str(label)}
            for value, label in choices_class.choices
        ]
