"""
MSK Factory shop floor models: machines, operators and their logs.
"""

from django.db import models
from django.db.models import Q


class ActiveQuerySet(models.QuerySet):
    """QuerySet for models that are deactivated instead of deleted."""

    def active(self):
        return self.filter(is_active=True)


# =============================================================================
# MODELS
# =============================================================================

class Machine(models.Model):
    class Status(models.TextChoices):
        OPERATIONAL = "Operational", "Operational"
        MAINTENANCE = "Maintenance", "Maintenance"
        OUT_OF_SERVICE = "Out of Service", "Out of Service"

    model_name = models.CharField(max_length=100, unique=True)
    capacity = models.PositiveIntegerField()
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.OPERATIONAL
    )
    notes = models.TextField(blank=True, default='')
    purchase_date = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ActiveQuerySet.as_manager()

    class Meta:
        ordering = ['model_name']
        constraints = [
            models.CheckConstraint(condition=Q(capacity__gt=0), name='machine_capacity_positive'),
        ]

    def __str__(self):
        return self.model_name


class Operator(models.Model):
    class RoleChoices(models.TextChoices):
        OPERATOR = "Operator", "Operator"
        SUPERVISOR = "Supervisor", "Supervisor"
        MANAGER = "Manager", "Manager"

    employee_id = models.CharField(max_length=30, unique=True)
    name = models.CharField(max_length=100)
    role = models.CharField(
        max_length=20,
        choices=RoleChoices.choices,
        default=RoleChoices.OPERATOR
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ActiveQuerySet.as_manager()

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.employee_id})"


class MachineLog(models.Model):
    class Shift(models.TextChoices):
        DAY = "DAY", "Day"
        NIGHT = "NIGHT", "Night"
        GENERAL = "GENERAL", "General"

    production_order = models.ForeignKey(
        'stock.ProductionOrder',
        on_delete=models.PROTECT,
        related_name='machine_logs'
    )
    machine = models.ForeignKey(
        Machine,
        on_delete=models.PROTECT,
        related_name='logs'
    )
    operator = models.ForeignKey(
        Operator,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='machine_logs'
    )
    log_date = models.DateTimeField()
    shift = models.CharField(max_length=10, choices=Shift.choices, db_index=True)
    working_hours = models.DecimalField(max_digits=6, decimal_places=2, default=0)
    idle_hours = models.DecimalField(max_digits=6, decimal_places=2, default=0)
    downtime_hours = models.DecimalField(max_digits=6, decimal_places=2, default=0)
    actual_qty_produced = models.PositiveIntegerField(default=0)
    wastage_qty = models.DecimalField(max_digits=15, decimal_places=4, default=0)
    notes = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-log_date', '-id']

    def __str__(self):
        return f"{self.machine} {self.log_date:%Y-%m-%d} {self.shift}"


class OperatorEntry(models.Model):
    production_order = models.ForeignKey(
        'stock.ProductionOrder',
        on_delete=models.PROTECT,
        related_name='operator_entries'
    )
    operator = models.ForeignKey(
        Operator,
        on_delete=models.PROTECT,
        related_name='entries'
    )
    activity_type = models.CharField(max_length=50, default='Production')
    start_time = models.DateTimeField()
    end_time = models.DateTimeField(null=True, blank=True)
    duration_minutes = models.PositiveIntegerField(null=True, blank=True)
    notes = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = 'operator entries'
        ordering = ['-start_time', '-id']
        constraints = [
            # One open (unterminated) entry per operator
            models.UniqueConstraint(
                fields=['operator'],
                condition=Q(end_time__isnull=True),
                name='one_open_entry_per_operator',
            ),
        ]

    def __str__(self):
        return f"{self.operator} on {self.production_order}"

    @property
    def is_open(self):
        return self.end_time is None
