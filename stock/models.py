from django.db import models
from django.db.models import Q


class InventoryItem(models.Model):
    class ItemType(models.TextChoices):
        FABRIC = "Fabric", "Fabric"
        THREAD = "Thread", "Thread"

    item_code = models.CharField(max_length=30, unique=True)
    item_type = models.CharField(max_length=10, choices=ItemType.choices)
    name = models.CharField(max_length=200)
    quantity = models.DecimalField(max_digits=15, decimal_places=4, default=0)
    unit = models.CharField(max_length=20)
    supplier = models.CharField(max_length=200, blank=True, default="")
    bill_number = models.CharField(max_length=100, blank=True, default="")
    price_per_unit = models.DecimalField(max_digits=15, decimal_places=4, default=0)
    last_purchase_date = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["item_code"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gte=0), name="inventory_quantity_non_negative"
            ),
            models.CheckConstraint(
                condition=Q(price_per_unit__gte=0), name="inventory_price_non_negative"
            ),
        ]

    def __str__(self):
        return f"{self.item_code} - {self.name}"


class Recipe(models.Model):
    design_code = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    stitches_required = models.PositiveIntegerField(null=True, blank=True)
    front_detail = models.TextField(blank=True, default="")
    back_detail = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["design_code"]

    def __str__(self):
        return f"{self.design_code} - {self.name}"


class RecipeMaterial(models.Model):
    recipe = models.ForeignKey(
        Recipe, on_delete=models.CASCADE, related_name="materials"
    )
    inventory_item = models.ForeignKey(
        InventoryItem, on_delete=models.PROTECT, related_name="recipe_materials"
    )
    quantity_required = models.DecimalField(max_digits=15, decimal_places=4)

    class Meta:
        ordering = ["id"]
        unique_together = [("recipe", "inventory_item")]

    def __str__(self):
        return f"{self.recipe.design_code}: {self.inventory_item.item_code} x {self.quantity_required}"


class PurchaseEntry(models.Model):
    purchase_number = models.CharField(max_length=30, unique=True)
    supplier = models.CharField(max_length=200)
    bill_number = models.CharField(max_length=100)
    contact = models.CharField(max_length=100, blank=True, default="")
    total_amount = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    purchase_date = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "purchase entries"
        ordering = ["-purchase_date", "-id"]

    def __str__(self):
        return f"{self.purchase_number} ({self.supplier})"


class PurchaseItem(models.Model):
    purchase = models.ForeignKey(
        PurchaseEntry, on_delete=models.CASCADE, related_name="items"
    )
    inventory_item = models.ForeignKey(
        InventoryItem, on_delete=models.PROTECT, related_name="purchase_items"
    )
    quantity = models.DecimalField(max_digits=15, decimal_places=4)
    price_per_unit = models.DecimalField(max_digits=15, decimal_places=4, default=0)

    class Meta:
        ordering = ["id"]

    @property
    def line_total(self):
        return self.quantity * self.price_per_unit

    def __str__(self):
        return f"{self.inventory_item.item_code} x {self.quantity}"


class ProductionOrder(models.Model):
    class Status(models.TextChoices):
        SCHEDULED = "Scheduled", "Scheduled"
        IN_PROGRESS = "In Progress", "In Progress"
        ON_HOLD = "On Hold", "On Hold"
        COMPLETED = "Completed", "Completed"
        CANCELLED = "Cancelled", "Cancelled"

    OPEN_STATUSES = (Status.SCHEDULED, Status.IN_PROGRESS, Status.ON_HOLD)

    order_number = models.CharField(max_length=30, unique=True)
    recipe = models.ForeignKey(
        Recipe, on_delete=models.PROTECT, related_name="production_orders"
    )
    machine = models.ForeignKey(
        "main.Machine", on_delete=models.PROTECT, related_name="production_orders"
    )
    target_qty = models.PositiveIntegerField()
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.SCHEDULED, db_index=True
    )
    started_at = models.DateTimeField()
    completed_at = models.DateTimeField(null=True, blank=True)
    actual_qty_produced = models.PositiveIntegerField(null=True, blank=True)
    wastage_qty = models.DecimalField(max_digits=15, decimal_places=4, default=0)
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return self.order_number

    @property
    def is_open(self):
        return self.status in self.OPEN_STATUSES


class ProductionItem(models.Model):
    production_order = models.ForeignKey(
        ProductionOrder, on_delete=models.CASCADE, related_name="items"
    )
    inventory_item = models.ForeignKey(
        InventoryItem, on_delete=models.PROTECT, related_name="production_items"
    )
    quantity_consumed = models.DecimalField(max_digits=15, decimal_places=4)
    wastage_qty = models.DecimalField(max_digits=15, decimal_places=4, default=0)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.inventory_item.item_code} (consumed: {self.quantity_consumed})"


class StockTransaction(models.Model):
    """One applied stock delta. An item's quantity is the sum of its rows."""

    class MovementType(models.TextChoices):
        OPENING_BALANCE = "OPENING_BALANCE", "Opening Balance"
        PURCHASE_IN = "PURCHASE_IN", "Purchase In"
        PURCHASE_EDIT = "PURCHASE_EDIT", "Purchase Edit"
        PURCHASE_REVERSAL = "PURCHASE_REVERSAL", "Purchase Reversal"
        PRODUCTION_OUT = "PRODUCTION_OUT", "Production Out"
        PRODUCTION_EDIT = "PRODUCTION_EDIT", "Production Edit"
        PRODUCTION_REVERSAL = "PRODUCTION_REVERSAL", "Production Reversal"
        ADJUSTMENT_PLUS = "ADJUSTMENT_PLUS", "Adjustment +"
        ADJUSTMENT_MINUS = "ADJUSTMENT_MINUS", "Adjustment -"

    inventory_item = models.ForeignKey(
        InventoryItem, on_delete=models.PROTECT, related_name="transactions"
    )
    movement_type = models.CharField(
        max_length=30, choices=MovementType.choices, db_index=True
    )
    quantity = models.DecimalField(max_digits=15, decimal_places=4)
    quantity_before = models.DecimalField(max_digits=15, decimal_places=4)
    quantity_after = models.DecimalField(max_digits=15, decimal_places=4)

    # Generic reference to source document
    reference_type = models.CharField(max_length=50, blank=True, default="")
    reference_id = models.PositiveIntegerField(null=True, blank=True)

    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["reference_type", "reference_id"], name="stock_tx_reference_idx"),
        ]

    def __str__(self):
        return f"{self.inventory_item.item_code} {self.quantity:+} ({self.get_movement_type_display()})"


class DocumentSequence(models.Model):
    name = models.CharField(max_length=50, unique=True)
    last_value = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name}: {self.last_value}"
