# store/views/store.py

"""
STORE VIEWSET

Purpose:
- Branch master data for staff
- Reads: anyone allowed to view stock operations
- Writes: admin only (stores.manage)
"""

from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from permissions.roles import (
    CAP_STOCKOPS_VIEW,
    CAP_STORES_MANAGE,
    HasCapability,
)
from store.models import Store
from store.serializers import StoreSerializer


class StoreViewSet(viewsets.ModelViewSet):
    """
    Store / Branch API
    """

    queryset = Store.objects.all().order_by("code")
    serializer_class = StoreSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    filterset_fields = ["is_active"]

    required_capability = None

    def get_permissions(self):
        if self.action in ("list", "retrieve"):
            self.required_capability = CAP_STOCKOPS_VIEW
        else:
            self.required_capability = CAP_STORES_MANAGE
        return [IsAuthenticated(), HasCapability()]
