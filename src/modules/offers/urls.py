"""Personalized offer URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.offers.views import (
    OfferDetailView,
    OfferListCreateView,
    OfferResolveView,
    OfferTokenView,
)

urlpatterns = [
    path(
        "personalized-offers/",
        OfferListCreateView.as_view(),
        name="offer-list",
    ),
    path(
        "personalized-offers/resolve/<str:slug>/",
        OfferResolveView.as_view(),
        name="offer-resolve",
    ),
    path(
        "personalized-offers/validate/<str:token>/",
        OfferTokenView.as_view(),
        name="offer-validate",
    ),
    path(
        "personalized-offers/<uuid:pk>/",
        OfferDetailView.as_view(),
        name="offer-detail",
    ),
]
