import json
from decimal import Decimal

from django.test import TestCase
from django.urls import reverse

from main.commands import FulfillmentCommand
from main.models import MachineLog
from main.services.machine_log_service import MachineLogService
from stock.models import ProductionOrder
from stock.services import OrderAlreadyCompletedError, NotFoundError, BusinessRuleError, ValidationError
from stock.tests.factories import make_item, make_recipe, make_machine, make_operator, produce


class FulfillmentTests(TestCase):

    def setUp(self):
        fabric = make_item("MSK-001", "100")
        self.machine = make_machine()
        self.order = produce(make_recipe([(fabric, 2)]), self.machine, 30)

    def command(self, **overrides):
        data = {
            "productionOrderId": self.order.id,
            "actualQtyProduced": 28,
            "wastageQty": "1.5",
            "completedAt": "2025-03-02T18:00:00Z",
            "shift": "night",
        }
        data.update(overrides)
        return FulfillmentCommand.from_dict(data)

    def test_fulfill_completes_order_and_writes_log(self):
        log = MachineLogService.fulfill(self.command())

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, ProductionOrder.Status.COMPLETED)
        self.assertEqual(self.order.actual_qty_produced, 28)
        self.assertEqual(self.order.wastage_qty, Decimal("1.5"))
        self.assertIsNotNone(self.order.completed_at)

        self.assertEqual(log["shift"], "NIGHT")
        self.assertEqual(log["machineId"], self.machine.id)
        self.assertEqual(Decimal(log["workingHours"]), Decimal("0"))
        self.assertIn("NIGHT shift", log["notes"])

    def test_second_fulfillment_is_refused(self):
        MachineLogService.fulfill(self.command())
        with self.assertRaises(OrderAlreadyCompletedError):
            MachineLogService.fulfill(self.command())
        self.assertEqual(MachineLog.objects.count(), 1)

    def test_cancelled_order_cannot_be_fulfilled(self):
        ProductionOrder.objects.filter(id=self.order.id).update(status=ProductionOrder.Status.CANCELLED)
        with self.assertRaises(BusinessRuleError):
            MachineLogService.fulfill(self.command())

    def test_unknown_order_and_operator(self):
        with self.assertRaises(NotFoundError):
            MachineLogService.fulfill(self.command(productionOrderId=999))
        with self.assertRaises(NotFoundError):
            MachineLogService.fulfill(self.command(operatorId=999))

    def test_operator_is_recorded(self):
        operator = make_operator()
        log = MachineLogService.fulfill(self.command(operatorId=operator.id, notes="Thread broke twice"))
        self.assertEqual(log["operatorId"], operator.id)
        self.assertEqual(log["notes"], "Thread broke twice")

    def test_invalid_shift_and_negative_quantities(self):
        for overrides in ({"shift": "EVENING"}, {"actualQtyProduced": -1}, {"wastageQty": "-0.1"}):
            with self.subTest(**overrides), self.assertRaises(ValidationError):
                self.command(**overrides)


class MachineLogAPITests(TestCase):

    def setUp(self):
        fabric = make_item("MSK-001", "100")
        self.machine = make_machine()
        self.order = produce(make_recipe([(fabric, 2)]), self.machine, 10)

    def fulfill(self, body):
        return self.client.put(
            reverse("main:machine-log-fulfill"), data=json.dumps(body), content_type="application/json"
        )

    def test_fulfill_and_filter_logs(self):
        response = self.fulfill({
            "productionOrderId": self.order.id, "actualQtyProduced": 10, "wastageQty": 0,
            "completedAt": "2025-03-02T10:00:00Z", "shift": "DAY",
        })
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["success"])

        response = self.fulfill({
            "productionOrderId": self.order.id, "actualQtyProduced": 10, "wastageQty": 0,
            "completedAt": "2025-03-02T10:00:00Z", "shift": "DAY",
        })
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error"]["code"], "ORDER_ALREADY_COMPLETED")

        day = self.client.get(reverse("main:machine-log-list"), {"shift": "day"}).json()
        night = self.client.get(reverse("main:machine-log-list"), {"shift": "NIGHT"}).json()
        self.assertEqual(day["data"]["pagination"]["totalItems"], 1)
        self.assertEqual(night["data"]["pagination"]["totalItems"], 0)

        by_machine = self.client.get(reverse("main:machine-log-list"), {"machineId": self.machine.id + 1}).json()
        self.assertEqual(by_machine["data"]["logs"], [])

    def test_missing_fields_are_400(self):
        response = self.fulfill({"productionOrderId": self.order.id})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["code"], "VALIDATION_ERROR")

    def test_completed_order_is_no_longer_editable(self):
        self.fulfill({
            "productionOrderId": self.order.id, "actualQtyProduced": 10, "wastageQty": 0,
            "completedAt": "2025-03-02T10:00:00Z", "shift": "GENERAL",
        })
        response = self.client.put(
            reverse("stock:production-detail", args=[self.order.id]),
            data=json.dumps({"notes": "late edit"}), content_type="application/json",
        )
        self.assertEqual(response.status_code, 409)
        response = self.client.delete(reverse("stock:production-detail", args=[self.order.id]))
        self.assertEqual(response.status_code, 409)
