from django.conf import settings
from django.db import models
from django.db.models import Sum
from django.utils import timezone
from authentication.models import Organization
from menu.models import Area, MenuItem
from decimal import Decimal
import uuid


def new_order_id():
    return str(uuid.uuid4())


class Day(models.Model):
    """Operational business day (giornata); active orders always belong to the open one"""
    STATUS_CHOICES = (
        ("Open", "Open"),
        ("Closed", "Closed"),
    )

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='days')
    start_time = models.DateTimeField(default=timezone.now)
    end_time = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="Open")
    opened_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='opened_days'
    )
    closed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='closed_days'
    )
    total_sales = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    class Meta:
        db_table = 'days'
        ordering = ['-start_time']

    def __str__(self):
        return f"Day #{self.id} ({self.status}) - {self.start_time:%Y-%m-%d}"

    @property
    def is_open(self):
        return self.status == "Open"


class Order(models.Model):
    PRE_ORDER = "PreOrder"
    PENDING = "Pending"
    PAID = "Paid"
    PREPARING = "Preparing"
    READY_FOR_PICKUP = "ReadyForPickup"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    status_options = (
        (PRE_ORDER, "Pre-order"),
        (PENDING, "Pending"),
        (PAID, "Paid"),
        (PREPARING, "Preparing"),
        (READY_FOR_PICKUP, "Ready for pickup"),
        (COMPLETED, "Completed"),
        (CANCELLED, "Cancelled"),
    )

    # Statuses that do not count as sales
    UNCOUNTED_STATUSES = [PRE_ORDER, PENDING, CANCELLED]

    PAYMENT_METHOD_CHOICES = (
        ("Contanti", "Contanti"),
        ("POS", "POS"),
    )

    id = models.CharField(primary_key=True, max_length=36, default=new_order_id, editable=False)
    preorder_platform_id = models.CharField(max_length=100, null=True, blank=True, db_index=True)
    display_order_number = models.CharField(max_length=20, null=True, blank=True)

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='orders')
    area = models.ForeignKey(Area, on_delete=models.CASCADE, related_name='orders')
    day = models.ForeignKey(Day, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    cashier = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='cashier_orders'
    )
    waiter = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='waiter_orders'
    )
    cashier_station = models.ForeignKey(
        'stations.CashierStation', on_delete=models.SET_NULL, null=True, blank=True, related_name='orders'
    )

    customer_name = models.CharField(max_length=100, null=True, blank=True)
    customer_email = models.EmailField(null=True, blank=True)
    table_number = models.CharField(max_length=20, null=True, blank=True)
    number_of_guests = models.IntegerField(default=1)
    is_takeaway = models.BooleanField(default=False)

    status = models.CharField(max_length=20, choices=status_options, default=PENDING)
    order_datetime = models.DateTimeField(default=timezone.now)

    # Pricing fields
    total_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    payment_method = models.CharField(max_length=50, null=True, blank=True)
    amount_paid = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    class Meta:
        db_table = 'orders'
        ordering = ['-order_datetime']

    def __str__(self):
        return f"{self.display_order_number or self.id} - {self.status}"

    def calculate_totals(self):
        """Recalculate the order total: item lines plus the area's cover or takeaway charge"""
        items_total = self.items.aggregate(
            total=Sum(models.F('unit_price') * models.F('quantity'), output_field=models.DecimalField())
        )['total'] or Decimal('0.00')
        self.total_amount = items_total + calculate_charges(self.area, self.is_takeaway, self.number_of_guests)
        return self.total_amount


def calculate_charges(area, is_takeaway, number_of_guests):
    if is_takeaway:
        return area.takeaway_charge
    return area.guest_charge * max(number_of_guests or 0, 0)


class OrderItem(models.Model):
    KDS_STATUS_CHOICES = (
        ("Pending", "Pending"),
        ("Confirmed", "Confirmed"),
    )

    order = models.ForeignKey(Order, related_name='items', on_delete=models.CASCADE)
    menu_item = models.ForeignKey(MenuItem, on_delete=models.PROTECT, related_name='order_items')
    quantity = models.IntegerField(default=1)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    note = models.CharField(max_length=200, null=True, blank=True)
    kds_status = models.CharField(max_length=20, choices=KDS_STATUS_CHOICES, default="Pending")

    class Meta:
        db_table = 'order_items'
        ordering = ['id']

    def __str__(self):
        return f"{self.quantity} x {self.menu_item.name}"

    @property
    def line_total(self):
        return self.unit_price * self.quantity


class AreaDayOrderSequence(models.Model):
    """Last display number handed out in an area during a day"""
    area = models.ForeignKey(Area, on_delete=models.CASCADE, related_name='order_sequences')
    day = models.ForeignKey(Day, on_delete=models.CASCADE, related_name='order_sequences')
    last_sequence = models.IntegerField(default=0)

    class Meta:
        db_table = 'area_day_order_sequences'
        unique_together = ['area', 'day']
