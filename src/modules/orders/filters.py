"""Query-string filters for the owner order list."""

from __future__ import annotations

from functools import reduce
from operator import or_

import django_filters
from django.db.models import Q, QuerySet

from modules.orders.constants import TERMINAL_STATES, normalize_status
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    """``?status=placed,shipped&open=true&start_date=2026-01-01``

    ``status`` takes one or more comma-separated values in any case.
    ``open`` splits orders that can still move from finished ones.
    """

    status = django_filters.CharFilter(method="filter_status")
    open = django_filters.BooleanFilter(method="filter_open")
    start_date = django_filters.DateFilter(
        field_name="created_at", lookup_expr="date__gte"
    )
    end_date = django_filters.DateFilter(
        field_name="created_at", lookup_expr="date__lte"
    )
    min_total = django_filters.NumberFilter(
        field_name="total_amount", lookup_expr="gte"
    )
    max_total = django_filters.NumberFilter(
        field_name="total_amount", lookup_expr="lte"
    )

    class Meta:
        model = Order
        fields = ["status", "open", "start_date", "end_date", "min_total", "max_total"]

    def filter_status(self, queryset: QuerySet, name: str, value: str) -> QuerySet:
        wanted = {normalize_status(part) for part in value.split(",") if part.strip()}
        if not wanted:
            return queryset
        # Stored values may predate upper-casing.
        return queryset.filter(reduce(or_, (Q(status__iexact=s) for s in wanted)))

    def filter_open(self, queryset: QuerySet, name: str, value) -> QuerySet:
        if value is None:
            return queryset
        terminal = reduce(or_, (Q(status__iexact=s) for s in TERMINAL_STATES))
        return queryset.exclude(terminal) if value else queryset.filter(terminal)
