import json
from datetime import timedelta

from django.db import IntegrityError, transaction
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from main.commands import StartWorkCommand, StopWorkCommand
from main.models import OperatorEntry
from main.services.operator_entry_service import OperatorEntryService
from stock.models import ProductionOrder
from stock.services import ConflictError, NotFoundError, OrderAlreadyCompletedError
from stock.tests.factories import make_item, make_recipe, make_machine, make_operator, produce


class OperatorEntryTests(TestCase):

    def setUp(self):
        fabric = make_item("MSK-001", "100")
        recipe = make_recipe([(fabric, 1)])
        machine = make_machine()
        self.order = produce(recipe, machine, 10)
        self.other_order = produce(recipe, machine, 10)
        self.operator = make_operator()

    def start(self, order=None, **extra):
        return OperatorEntryService.start_work(StartWorkCommand.from_dict({
            "productionOrderId": (order or self.order).id,
            "operatorId": self.operator.id,
            **extra,
        }))

    def test_second_open_entry_conflicts(self):
        first = self.start()
        self.assertTrue(first["isOpen"])
        self.assertEqual(first["activityType"], "Production")

        with self.assertRaises(ConflictError) as ctx:
            self.start(order=self.other_order)
        self.assertEqual(ctx.exception.details["entryId"], first["id"])
        self.assertEqual(OperatorEntry.objects.filter(end_time__isnull=True).count(), 1)

    def test_partial_unique_index_backs_the_check(self):
        self.start()
        with self.assertRaises(IntegrityError), transaction.atomic():
            OperatorEntry.objects.create(
                production_order=self.other_order, operator=self.operator, start_time=timezone.now()
            )

    def test_stop_sets_duration_and_appends_note(self):
        entry = self.start(notes="Front panel")
        OperatorEntry.objects.filter(id=entry["id"]).update(start_time=timezone.now() - timedelta(minutes=95, seconds=20))

        stopped = OperatorEntryService.stop_work(StopWorkCommand.from_dict({"entryId": entry["id"], "notes": "Done"}))

        self.assertFalse(stopped["isOpen"])
        self.assertEqual(stopped["durationMinutes"], 95)
        self.assertEqual(stopped["notes"], "Front panel; Stop Note: Done")

    def test_stop_twice_conflicts(self):
        entry = self.start()
        OperatorEntryService.stop_work(StopWorkCommand.from_dict({"entryId": entry["id"]}))
        with self.assertRaises(ConflictError):
            OperatorEntryService.stop_work(StopWorkCommand.from_dict({"entryId": entry["id"]}))

    def test_stopped_operator_can_start_again(self):
        entry = self.start()
        OperatorEntryService.stop_work(StopWorkCommand.from_dict({"entryId": entry["id"]}))
        again = self.start(order=self.other_order, activityType="Finishing")
        self.assertEqual(again["activityType"], "Finishing")

    def test_unknown_entry_order_and_operator(self):
        with self.assertRaises(NotFoundError):
            OperatorEntryService.stop_work(StopWorkCommand.from_dict({"entryId": 999}))
        with self.assertRaises(NotFoundError):
            OperatorEntryService.start_work(StartWorkCommand.from_dict({
                "productionOrderId": 999, "operatorId": self.operator.id,
            }))
        with self.assertRaises(NotFoundError):
            OperatorEntryService.start_work(StartWorkCommand.from_dict({
                "productionOrderId": self.order.id, "operatorId": 999,
            }))

    def test_completed_order_takes_no_new_work(self):
        ProductionOrder.objects.filter(id=self.order.id).update(status=ProductionOrder.Status.COMPLETED)
        with self.assertRaises(OrderAlreadyCompletedError):
            self.start()


class OperatorEntryAPITests(TestCase):

    def setUp(self):
        fabric = make_item("MSK-001", "100")
        self.order = produce(make_recipe([(fabric, 1)]), make_machine(), 10)
        self.operator = make_operator()

    def post(self, url, body, method="post"):
        return getattr(self.client, method)(url, data=json.dumps(body), content_type="application/json")

    def test_start_stop_and_open_list(self):
        body = {"productionOrderId": self.order.id, "operatorId": self.operator.id}
        response = self.post(reverse("main:operator-entry-start"), body)
        self.assertEqual(response.status_code, 201)
        entry_id = response.json()["data"]["id"]

        response = self.post(reverse("main:operator-entry-start"), body)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error"]["code"], "CONFLICT")

        open_entries = self.client.get(reverse("main:operator-entry-open")).json()
        self.assertEqual(open_entries["data"]["count"], 1)

        response = self.post(reverse("main:operator-entry-stop"), {"entryId": entry_id}, method="put")
        self.assertEqual(response.status_code, 200)
        response = self.post(reverse("main:operator-entry-stop"), {"entryId": entry_id}, method="put")
        self.assertEqual(response.status_code, 409)

        open_entries = self.client.get(reverse("main:operator-entry-open")).json()
        self.assertEqual(open_entries["data"]["count"], 0)

    def test_wrong_method_uses_envelope(self):
        response = self.client.get(reverse("main:operator-entry-start"))
        self.assertEqual(response.status_code, 405)
        self.assertFalse(response.json()["success"])
