"""API URL configuration."""
from __future__ import annotations

from django.urls import path

from backend.api.views import RefreshView, StationsView, WaterLevelView

urlpatterns = [
    path("waterlevel", WaterLevelView.as_view(), name="waterlevel"),
    path("waterlevel/<str:station>", WaterLevelView.as_view(), name="waterlevel-station"),
    path("refresh", RefreshView.as_view(), name="refresh"),
    path("stations", StationsView.as_view(), name="stations"),
]
