"""Account URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.accounts.views import AccountDeleteView

urlpatterns = [
    path("account/delete/", AccountDeleteView.as_view(), name="account-delete"),
]
