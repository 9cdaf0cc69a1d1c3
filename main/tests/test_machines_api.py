import json

from django.test import TestCase
from django.urls import reverse

from main.models import Machine, Operator
from stock.tests.factories import make_item, make_recipe, make_machine, make_operator, produce


class MachineAPITests(TestCase):

    def send(self, method, url, body=None):
        if body is None:
            return getattr(self.client, method)(url)
        return getattr(self.client, method)(url, data=json.dumps(body), content_type="application/json")

    def test_create_list_update(self):
        response = self.send("post", reverse("main:machine-list"), {
            "modelName": "Barudan BEKY-S", "capacity": 15, "purchaseDate": "2023-06-01",
        })
        self.assertEqual(response.status_code, 201)
        machine = response.json()["data"]
        self.assertEqual(machine["status"], "Operational")
        self.assertEqual(machine["purchaseDate"], "2023-06-01")

        response = self.send("post", reverse("main:machine-list"), {"modelName": "barudan beky-s", "capacity": 4})
        self.assertEqual(response.status_code, 409)

        response = self.send("put", reverse("main:machine-detail", args=[machine["id"]]), {"status": "Maintenance"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["status"], "Maintenance")

        listing = self.send("get", reverse("main:machine-list")).json()
        self.assertEqual(listing["data"]["pagination"]["totalItems"], 1)

    def test_capacity_must_be_positive(self):
        response = self.send("post", reverse("main:machine-list"), {"modelName": "X", "capacity": 0})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["details"]["field"], "capacity")

    def test_delete_unused_and_used_machines(self):
        idle = make_machine("Idle One")
        response = self.send("delete", reverse("main:machine-detail", args=[idle.id]))
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Machine.objects.filter(id=idle.id).exists())

        busy = make_machine("Busy One")
        produce(make_recipe([(make_item("MSK-001", "10"), 1)]), busy, 1)
        response = self.send("delete", reverse("main:machine-detail", args=[busy.id]))
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["data"]["deleted"])
        busy.refresh_from_db()
        self.assertFalse(busy.is_active)

    def test_unknown_machine(self):
        response = self.send("get", reverse("main:machine-detail", args=[999]))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"]["code"], "NOT_FOUND")

    def test_unknown_route_is_json(self):
        response = self.client.get("/api/no-such-endpoint")
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.json()["success"])


class OperatorAPITests(TestCase):

    def send(self, method, url, body=None):
        if body is None:
            return getattr(self.client, method)(url)
        return getattr(self.client, method)(url, data=json.dumps(body), content_type="application/json")

    def test_employee_id_is_unique(self):
        response = self.send("post", reverse("main:operator-list"), {"employeeId": "emp-9", "name": "Sana"})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["data"]["employeeId"], "EMP-9")

        response = self.send("post", reverse("main:operator-list"), {"employeeId": "EMP-9", "name": "Other"})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error"]["code"], "DUPLICATE_IDENTIFIER")

    def test_employee_id_cannot_change(self):
        operator = make_operator()
        response = self.send("put", reverse("main:operator-detail", args=[operator.id]), {"employeeId": "NEW"})
        self.assertEqual(response.status_code, 400)

        response = self.send("put", reverse("main:operator-detail", args=[operator.id]), {"role": "supervisor"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(Operator.objects.get(id=operator.id).role, Operator.RoleChoices.SUPERVISOR)

    def test_health(self):
        response = self.client.get(reverse("main:health"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["database"], "ok")
