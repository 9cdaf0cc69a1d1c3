import threading
from decimal import Decimal
from unittest import mock

from django.db import connection
from django.test import TestCase, TransactionTestCase, skipUnlessDBFeature

from stock.commands import ProductionOrderUpdate, PurchaseUpdate, PurchaseLine, StockAdjustment
from stock.models import DocumentSequence, InventoryItem, ProductionOrder, PurchaseEntry, StockTransaction
from stock.services import base_service
from stock.services.base_service import generate_number
from stock.services import (
    StockLedger, InventoryItemService, PurchaseEntryService, ProductionOrderService,
    StockTransactionService,
    InsufficientStockError, NotFoundError, DanglingReferenceError, ValidationError,
    OrderAlreadyCompletedError, BusinessRuleError, ConflictError,
)
from stock.tests.factories import (
    make_item, make_recipe, make_machine, make_operator, produce, purchase, ledger_total,
)

Movement = StockTransaction.MovementType


class ProductionConsumptionTests(TestCase):

    def setUp(self):
        self.fabric = make_item("MSK-001", "100")
        self.machine = make_machine()
        self.recipe = make_recipe([(self.fabric, 2)])

    def test_order_deducts_recipe_quantity_and_keeps_ledger_in_step(self):
        order = produce(self.recipe, self.machine, 30)

        self.fabric.refresh_from_db()
        self.assertEqual(self.fabric.quantity, Decimal("40"))
        self.assertEqual(ledger_total(self.fabric), self.fabric.quantity)
        self.assertEqual(order.status, ProductionOrder.Status.SCHEDULED)
        self.assertEqual(order.items.get().quantity_consumed, Decimal("60"))

    def test_short_order_is_refused_and_stock_unchanged(self):
        produce(self.recipe, self.machine, 30)

        with self.assertRaises(InsufficientStockError) as ctx:
            produce(self.recipe, self.machine, 25)

        self.fabric.refresh_from_db()
        self.assertEqual(self.fabric.quantity, Decimal("40"))
        self.assertEqual(ProductionOrder.objects.count(), 1)
        shortfalls = ctx.exception.details["shortfalls"]
        self.assertEqual(shortfalls[0]["itemCode"], "MSK-001")
        self.assertEqual(Decimal(shortfalls[0]["shortfall"]), Decimal("10"))

    def test_consumption_is_all_or_nothing(self):
        thread = make_item("MSK-002", "5", item_type="Thread", name="Silk Thread", unit="cone")
        recipe = make_recipe([(self.fabric, 1), (thread, 1)], design_code="D-200")

        with self.assertRaises(InsufficientStockError):
            produce(recipe, self.machine, 10)

        self.fabric.refresh_from_db()
        thread.refresh_from_db()
        self.assertEqual(self.fabric.quantity, Decimal("100"))
        self.assertEqual(thread.quantity, Decimal("5"))
        self.assertFalse(self.fabric.transactions.filter(movement_type=Movement.PRODUCTION_OUT).exists())

    def test_stale_read_cannot_overdraw(self):
        # Two callers that both saw 100 on hand
        first = InventoryItem.objects.get(id=self.fabric.id)
        second = InventoryItem.objects.get(id=self.fabric.id)

        StockLedger._apply(first, Decimal("-60"), Movement.PRODUCTION_OUT)
        with self.assertRaises(InsufficientStockError):
            StockLedger._apply(second, Decimal("-60"), Movement.PRODUCTION_OUT)

        self.fabric.refresh_from_db()
        self.assertEqual(self.fabric.quantity, Decimal("40"))

    def test_recipe_without_materials_is_rejected(self):
        empty = make_recipe([], design_code="D-EMPTY")
        with self.assertRaises(ValidationError):
            produce(empty, self.machine, 1)

    def test_inactive_machine_is_rejected(self):
        self.machine.is_active = False
        self.machine.save()
        with self.assertRaises(BusinessRuleError):
            produce(self.recipe, self.machine, 1)

    def test_order_numbers_follow_sequence(self):
        first = produce(self.recipe, self.machine, 1)
        second = produce(self.recipe, self.machine, 1)
        self.assertEqual(first.order_number, "PROD-001")
        self.assertEqual(second.order_number, "PROD-002")

    def test_availability_preview_does_not_move_stock(self):
        result = ProductionOrderService.check_availability(self.recipe.id, 60)["data"]

        self.assertFalse(result["canProduce"])
        self.assertEqual(Decimal(result["shortfalls"][0]["shortfall"]), Decimal("20"))
        self.fabric.refresh_from_db()
        self.assertEqual(self.fabric.quantity, Decimal("100"))


class ProductionEditTests(TestCase):

    def setUp(self):
        self.fabric = make_item("MSK-001", "100")
        self.machine = make_machine()
        self.recipe = make_recipe([(self.fabric, 2)])
        self.order = produce(self.recipe, self.machine, 30)

    def test_target_change_applies_net_delta(self):
        ProductionOrderService.update(self.order.id, ProductionOrderUpdate.from_dict({"targetQty": 20}))

        self.fabric.refresh_from_db()
        self.assertEqual(self.fabric.quantity, Decimal("60"))
        edits = StockTransactionService.get_by_reference("productionorder", self.order.id).filter(
            movement_type=Movement.PRODUCTION_EDIT
        )
        self.assertEqual([tx.quantity for tx in edits], [Decimal("20")])

    def test_target_increase_beyond_stock_is_refused(self):
        with self.assertRaises(InsufficientStockError):
            ProductionOrderService.update(self.order.id, ProductionOrderUpdate.from_dict({"targetQty": 60}))

        self.order.refresh_from_db()
        self.fabric.refresh_from_db()
        self.assertEqual(self.order.target_qty, 30)
        self.assertEqual(self.fabric.quantity, Decimal("40"))

    def test_status_cannot_be_set_to_completed_directly(self):
        with self.assertRaises(ValidationError):
            ProductionOrderService.update(self.order.id, ProductionOrderUpdate.from_dict({"status": "Completed"}))

    def test_delete_restores_stock(self):
        ProductionOrderService.delete(self.order.id)

        self.fabric.refresh_from_db()
        self.assertEqual(self.fabric.quantity, Decimal("100"))
        self.assertEqual(ledger_total(self.fabric), Decimal("100"))
        self.assertFalse(ProductionOrder.objects.filter(id=self.order.id).exists())

    def test_completed_order_cannot_be_deleted(self):
        ProductionOrder.objects.filter(id=self.order.id).update(status=ProductionOrder.Status.COMPLETED)
        with self.assertRaises(OrderAlreadyCompletedError):
            ProductionOrderService.delete(self.order.id)

    def test_order_with_work_entries_cannot_be_deleted(self):
        self.order.operator_entries.create(operator=make_operator(), start_time=self.order.started_at)
        with self.assertRaises(ConflictError):
            ProductionOrderService.delete(self.order.id)


class PurchaseLedgerTests(TestCase):

    def test_purchase_creates_unknown_items_and_books_stock(self):
        entry = purchase([
            {"itemCode": "101", "qty": "10", "pricePerUnit": "300",
             "name": "Chiffon", "itemType": "fabric", "unit": "meter"},
        ])

        item = InventoryItem.objects.get(item_code="MSK-101")
        self.assertEqual(item.quantity, Decimal("10"))
        self.assertEqual(item.item_type, InventoryItem.ItemType.FABRIC)
        self.assertEqual(item.supplier, "Al-Karam Mills")
        self.assertEqual(entry.purchase_number, "PUR001")

    def test_new_item_without_details_is_rejected(self):
        with self.assertRaises(ValidationError):
            purchase([{"itemCode": "MSK-404", "qty": "3"}])
        self.assertFalse(PurchaseEntry.objects.exists())

    def test_same_code_twice_is_rejected(self):
        make_item("MSK-001", "0")
        with self.assertRaises(ValidationError):
            purchase([{"itemCode": "MSK-001", "qty": "1"}, {"itemCode": " msk-001 ", "qty": "2"}])

    def test_edit_applies_only_the_difference(self):
        item = make_item("MSK-001", "0")
        entry = purchase([{"itemCode": "MSK-001", "qty": "10"}])

        PurchaseEntryService.update(entry.id, PurchaseUpdate(items=PurchaseLine.list_from([
            {"itemCode": "MSK-001", "qty": "4", "pricePerUnit": "0"},
        ])))

        item.refresh_from_db()
        self.assertEqual(item.quantity, Decimal("4"))
        deltas = [
            (tx.movement_type, tx.quantity)
            for tx in StockTransactionService.get_by_reference("purchaseentry", entry.id)
        ]
        self.assertEqual(deltas, [(Movement.PURCHASE_IN, Decimal("10")), (Movement.PURCHASE_EDIT, Decimal("-6"))])

    def test_edit_below_consumed_stock_is_refused(self):
        item = make_item("MSK-001", "0")
        entry = purchase([{"itemCode": "MSK-001", "qty": "10"}])
        InventoryItemService.adjust_stock(item.id, StockAdjustment.from_dict({"qty": "8", "operation": "subtract"}))

        with self.assertRaises(InsufficientStockError):
            PurchaseEntryService.update(entry.id, PurchaseUpdate(items=PurchaseLine.list_from([
                {"itemCode": "MSK-001", "qty": "1", "pricePerUnit": "0"},
            ])))

        item.refresh_from_db()
        self.assertEqual(item.quantity, Decimal("2"))

    def test_delete_reverses_once(self):
        item = make_item("MSK-001", "5")
        entry = purchase([{"itemCode": "MSK-001", "qty": "10"}])

        PurchaseEntryService.delete(entry.id)
        item.refresh_from_db()
        self.assertEqual(item.quantity, Decimal("5"))

        with self.assertRaises(NotFoundError):
            PurchaseEntryService.delete(entry.id)
        item.refresh_from_db()
        self.assertEqual(item.quantity, Decimal("5"))
        self.assertEqual(ledger_total(item), Decimal("5"))

    def test_delete_against_inactive_item_is_dangling(self):
        item = make_item("MSK-001", "0")
        entry = purchase([{"itemCode": "MSK-001", "qty": "10"}])
        InventoryItem.objects.filter(id=item.id).update(is_active=False)

        with self.assertRaises(DanglingReferenceError):
            PurchaseEntryService.delete(entry.id)

        item.refresh_from_db()
        self.assertEqual(item.quantity, Decimal("10"))
        self.assertTrue(PurchaseEntry.objects.filter(id=entry.id).exists())

    def test_edit_does_not_reactivate_an_item(self):
        item = make_item("MSK-001", "0")
        entry = purchase([{"itemCode": "MSK-001", "qty": "10"}])
        InventoryItem.objects.filter(id=item.id).update(is_active=False)

        PurchaseEntryService.update(entry.id, PurchaseUpdate(items=PurchaseLine.list_from([
            {"itemCode": "MSK-001", "qty": "10", "pricePerUnit": "12"},
        ])))

        item.refresh_from_db()
        self.assertFalse(item.is_active)
        self.assertEqual(item.quantity, Decimal("10"))
        self.assertEqual(item.price_per_unit, Decimal("12"))

        with self.assertRaises(DanglingReferenceError):
            PurchaseEntryService.update(entry.id, PurchaseUpdate(items=PurchaseLine.list_from([
                {"itemCode": "MSK-001", "qty": "4", "pricePerUnit": "12"},
            ])))

    def test_new_purchase_reactivates_an_item(self):
        item = make_item("MSK-001", "0")
        InventoryItem.objects.filter(id=item.id).update(is_active=False)

        purchase([{"itemCode": "MSK-001", "qty": "3"}])

        item.refresh_from_db()
        self.assertTrue(item.is_active)
        self.assertEqual(item.quantity, Decimal("3"))

    def test_purchase_numbers_continue_from_existing_documents(self):
        PurchaseEntry.objects.create(
            purchase_number="PUR007", supplier="Legacy", bill_number="OLD",
            purchase_date="2024-01-01T00:00:00Z",
        )
        make_item("MSK-001", "0")
        entry = purchase([{"itemCode": "MSK-001", "qty": "1"}])
        self.assertEqual(entry.purchase_number, "PUR008")


class ManualAdjustmentTests(TestCase):

    def setUp(self):
        self.item = make_item("MSK-001", "10")

    def test_add_and_subtract(self):
        InventoryItemService.adjust_stock(self.item.id, StockAdjustment.from_dict({"qty": "5", "operation": "add"}))
        InventoryItemService.adjust_stock(self.item.id, StockAdjustment.from_dict({"qty": "3", "operation": "subtract"}))

        self.item.refresh_from_db()
        self.assertEqual(self.item.quantity, Decimal("12"))
        self.assertEqual(ledger_total(self.item), Decimal("12"))

    def test_subtract_more_than_on_hand(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            InventoryItemService.adjust_stock(
                self.item.id, StockAdjustment.from_dict({"qty": "11", "operation": "subtract"})
            )
        self.assertEqual(ctx.exception.shortfall, Decimal("1"))
        self.item.refresh_from_db()
        self.assertEqual(self.item.quantity, Decimal("10"))

    def test_unknown_item(self):
        with self.assertRaises(NotFoundError):
            InventoryItemService.adjust_stock(999, StockAdjustment.from_dict({"qty": "1", "operation": "add"}))

    def test_referenced_item_is_deactivated_not_deleted(self):
        InventoryItemService.delete(self.item.id)

        self.item.refresh_from_db()
        self.assertFalse(self.item.is_active)


class DocumentNumberTests(TestCase):

    def setUp(self):
        PurchaseEntry.objects.create(
            purchase_number="PUR007", supplier="Legacy", bill_number="OLD",
            purchase_date="2024-01-01T00:00:00Z",
        )

    def test_interleaved_first_use_gives_distinct_numbers(self):
        # The second caller seeds and takes a number while the first is
        # still between reading the highest number and inserting the counter.
        real_highest = base_service._highest_existing_number
        started, interleaved = [], []

        def highest_then_interleave(*args):
            highest = real_highest(*args)
            if not started:
                started.append(True)
                interleaved.append(generate_number("purchase_entry", PurchaseEntry, "purchase_number"))
            return highest

        with mock.patch.object(base_service, "_highest_existing_number", side_effect=highest_then_interleave):
            first = generate_number("purchase_entry", PurchaseEntry, "purchase_number")

        self.assertEqual(interleaved, ["PUR008"])
        self.assertEqual(first, "PUR009")
        self.assertEqual(DocumentSequence.objects.get(name="purchase_entry").last_value, 9)

    def test_numbers_are_not_reused_after_delete(self):
        make_item("MSK-001", "0")
        entry = purchase([{"itemCode": "MSK-001", "qty": "1"}])
        PurchaseEntryService.delete(entry.id)

        again = purchase([{"itemCode": "MSK-001", "qty": "1"}])
        self.assertEqual((entry.purchase_number, again.purchase_number), ("PUR008", "PUR009"))


@skipUnlessDBFeature("has_select_for_update")
class ConcurrentLedgerTests(TransactionTestCase):
    """Parallel ledger writes; run with msk_factory.settings.test_postgres."""

    def test_parallel_orders_never_overdraw(self):
        fabric = make_item("MSK-001", "100")
        machine = make_machine()
        recipe = make_recipe([(fabric, 2)])
        outcomes = []
        barrier = threading.Barrier(2)

        def place():
            barrier.wait()
            try:
                produce(recipe, machine, 30)
                outcomes.append("ok")
            except InsufficientStockError:
                outcomes.append("short")
            finally:
                connection.close()

        threads = [threading.Thread(target=place) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        fabric.refresh_from_db()
        self.assertEqual(sorted(outcomes), ["ok", "short"])
        self.assertEqual(fabric.quantity, Decimal("40"))
        self.assertEqual(ledger_total(fabric), Decimal("40"))

    def test_parallel_purchases_get_distinct_numbers(self):
        make_item("MSK-001", "0")
        numbers = []
        barrier = threading.Barrier(4)

        def book():
            barrier.wait()
            try:
                numbers.append(purchase([{"itemCode": "MSK-001", "qty": "1"}]).purchase_number)
            finally:
                connection.close()

        threads = [threading.Thread(target=book) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(sorted(numbers), ["PUR001", "PUR002", "PUR003", "PUR004"])
        self.assertEqual(InventoryItem.objects.get(item_code="MSK-001").quantity, Decimal("4"))
