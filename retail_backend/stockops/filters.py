# stockops/filters.py

"""
History filters for stock operations and transfer requests.

?store=<uuid> matches either side of a transfer.
"""

import django_filters
from django.db.models import Q

from stockops.catalog import ClearanceType, OperationKind
from stockops.models import StockOperation, TransferRequest


class StockOperationFilter(django_filters.FilterSet):
    store = django_filters.UUIDFilter(method="filter_store")
    kind = django_filters.MultipleChoiceFilter(choices=OperationKind.choices)
    clearance_type = django_filters.ChoiceFilter(choices=ClearanceType.choices)
    date_from = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    date_to = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")
    code = django_filters.CharFilter(field_name="code", lookup_expr="icontains")
    trip_id = django_filters.CharFilter(field_name="trip_id", lookup_expr="iexact")

    class Meta:
        model = StockOperation
        fields = ["item", "is_active"]

    def filter_store(self, queryset, name, value):
        return queryset.filter(Q(store_id=value) | Q(destination_store_id=value))


class TransferRequestFilter(django_filters.FilterSet):
    store = django_filters.UUIDFilter(method="filter_store")

    class Meta:
        model = TransferRequest
        fields = ["status", "source_store", "destination_store", "item"]

    def filter_store(self, queryset, name, value):
        return queryset.filter(Q(source_store_id=value) | Q(destination_store_id=value))
