"""
Integration tests for core endpoints.

Scope in this file:
- GET /api/core/constants/
"""

from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient


class TestCoreEndpoints(TestCase):

    def setUp(self):
        self.client = APIClient()

    def test_constants_are_public(self):
        resp = self.client.get(reverse("core:system-constants"))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        for key in (
            "risk_levels",
            "penalty_tiers",
            "economy_event_types",
            "sustainability_scores",
            "economy",
            "risk_policy",
        ):
            self.assertIn(key, resp.data)

    def test_constants_choice_shape(self):
        resp = self.client.get(reverse("core:system-constants"))
        risk_levels = resp.data["risk_levels"]
        self.assertEqual(
            [item["value"] for item in risk_levels],
            ["LOW", "MEDIUM", "HIGH", "CRITICAL"],
        )
        for item in risk_levels:
            self.assertEqual(set(item.keys()), {"value", "label"})
        self.assertIn(
            {"value": "blocked", "label": "Blocked"}, resp.data["penalty_tiers"],
        )

    def test_constants_split_rates(self):
        economy = self.client.get(reverse("core:system-constants")).data["economy"]
        self.assertEqual(economy["max_supply"], 100_000_000)
        self.assertEqual(
            (economy["burn_rate_percent"], economy["reward_pool_rate_percent"],
             economy["treasury_rate_percent"]),
            (10, 20, 70),
        )

    def test_risk_policy_table(self):
        policy = self.client.get(reverse("core:system-constants")).data["risk_policy"]
        by_level = {row["risk_level"]: row for row in policy}
        self.assertEqual(by_level["LOW"]["reward_multiplier"], 1.0)
        self.assertEqual(by_level["HIGH"]["daily_cap"], 200)
        self.assertEqual(by_level["CRITICAL"]["cooldown_seconds"], 3600)
        self.assertEqual(by_level["MEDIUM"]["min_score"], 50)

    @override_settings(NITRO_ECONOMY={"burn_rate_percent": 15})
    def test_constants_follow_settings(self):
        economy = self.client.get(reverse("core:system-constants")).data["economy"]
        self.assertEqual(economy["burn_rate_percent"], 15)
        self.assertEqual(economy["treasury_rate_percent"], 65)
