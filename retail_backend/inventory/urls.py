# inventory/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from inventory.views import ItemViewSet

router = DefaultRouter()
router.register(r"items", ItemViewSet, basename="items")

urlpatterns = [
    path("", include(router.urls)),
]
