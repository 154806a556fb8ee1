from django.urls import path

from .views import SystemConfigDetailView, SystemConfigView

urlpatterns = [
    path("config", SystemConfigView.as_view(), name="config"),
    path("config/<str:key>", SystemConfigDetailView.as_view(), name="config-detail"),
]
