"""
Anti-bot app URL configuration.

URL prefix (registered in ``backend/urls.py``)::

    path('api/antibot/', include('antibot.urls'))

Endpoint summary
----------------
POST  /api/antibot/assess/                   — Risk assessment.
GET   /api/antibot/can-race/?wallet=         — Pre-race gate.
GET   /api/antibot/profiles/<wallet>/        — Profile detail (staff).
POST  /api/antibot/profiles/<wallet>/clear/  — Clear penalties (staff).
GET   /api/antibot/report/                   — Security report (staff).
"""

from django.urls import path

from . import views

app_name = "antibot"

urlpatterns = [
    path("assess/", views.RiskAssessmentView.as_view(), name="risk-assess"),
    path("can-race/", views.CanRaceView.as_view(), name="can-race"),
    path(
        "profiles/<str:wallet>/",
        views.BehaviorProfileDetailView.as_view(),
        name="profile-detail",
    ),
    path(
        "profiles/<str:wallet>/clear/",
        views.BehaviorProfileClearView.as_view(),
        name="profile-clear",
    ),
    path("report/", views.SecurityReportView.as_view(), name="security-report"),
]
