# store/tests/test_api.py

from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from permissions.roles import ROLE_ADMIN, ROLE_MANAGER
from stockops.tests.helpers import make_store, make_user


class StoreApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.manager = make_user("manager", role=ROLE_MANAGER)
        self.admin = make_user("owner", role=ROLE_ADMIN)
        make_store("1", name="Main Store")

    def test_manager_reads_but_cannot_create(self):
        self.client.force_authenticate(self.manager)

        listed = self.client.get("/api/store/stores/")
        self.assertEqual(listed.status_code, status.HTTP_200_OK)
        self.assertEqual(listed.data["results"][0]["label"], "S1")

        created = self.client.post("/api/store/stores/", {"name": "Branch", "code": "2"}, format="json")
        self.assertEqual(created.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_creates_store(self):
        self.client.force_authenticate(self.admin)
        res = self.client.post("/api/store/stores/", {"name": "Branch", "code": "2"}, format="json")

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["label"], "S2")
