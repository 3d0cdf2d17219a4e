"""
Racing app URL configuration.

URL prefix (registered in ``backend/urls.py``)::

    path('api/racing/', include('racing.urls'))

Endpoint summary
----------------
POST  /api/racing/quote/    — Reward quote (public).
POST  /api/racing/prepare/  — Pre-race gate and opponent.
POST  /api/racing/settle/   — Settle a finished race.
"""

from django.urls import path

from . import views

app_name = "racing"

urlpatterns = [
    path("quote/", views.RewardQuoteView.as_view(), name="reward-quote"),
    path("prepare/", views.RacePrepareView.as_view(), name="race-prepare"),
    path("settle/", views.RaceSettleView.as_view(), name="race-settle"),
]
