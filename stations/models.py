from django.db import models
from authentication.models import Organization, TimeStampedModel
from menu.models import Area, MenuCategory
import uuid


# =============== PRINTERS ===============

class Printer(TimeStampedModel):
    PRINTER_TYPES = [
        ('Network', 'Network'),
        ('WindowsUsb', 'Windows USB'),
    ]

    PRINT_MODES = [
        ('Immediate', 'Immediate'),
        ('OnDemandWindows', 'On Demand (Windows companion)'),
    ]

    PAPER_SIZES = [
        ('80mm', '80mm'),
        ('58mm', '58mm'),
        ('A4', 'A4'),
    ]

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='printers')
    name = models.CharField(max_length=100)
    type = models.CharField(max_length=20, choices=PRINTER_TYPES, default='Network')
    connection_string = models.CharField(max_length=255)  # "ip:port" or the companion instance id
    is_enabled = models.BooleanField(default=True)
    print_mode = models.CharField(max_length=20, choices=PRINT_MODES, default='Immediate')
    paper_size = models.CharField(max_length=10, choices=PAPER_SIZES, default='80mm')

    class Meta:
        db_table = 'printers'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.type})"


class PrinterCategoryAssignment(models.Model):
    """Routes the comanda lines of a menu category to a printer"""
    printer = models.ForeignKey(Printer, on_delete=models.CASCADE, related_name='category_assignments')
    menu_category = models.ForeignKey(MenuCategory, on_delete=models.CASCADE, related_name='printer_assignments')

    class Meta:
        db_table = 'printer_category_assignments'
        unique_together = ['printer', 'menu_category']


class PrintJob(models.Model):
    JOB_TYPES = [
        ('Receipt', 'Receipt'),
        ('Comanda', 'Comanda'),
        ('TestPrint', 'Test Print'),
    ]

    STATUS_CHOICES = [
        ('Pending', 'Pending'),
        ('Processing', 'Processing'),
        ('Succeeded', 'Succeeded'),
        ('Failed', 'Failed'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='print_jobs')
    area = models.ForeignKey(Area, on_delete=models.SET_NULL, null=True, blank=True, related_name='print_jobs')
    order = models.ForeignKey('orders.Order', on_delete=models.SET_NULL, null=True, blank=True, related_name='print_jobs')
    printer = models.ForeignKey(Printer, on_delete=models.CASCADE, related_name='jobs')
    job_type = models.CharField(max_length=20, choices=JOB_TYPES)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='Pending')
    content = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)
    last_attempt_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    retry_count = models.IntegerField(default=0)
    error_message = models.CharField(max_length=500, null=True, blank=True)

    class Meta:
        db_table = 'print_jobs'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.job_type} on {self.printer.name} - {self.status}"


# =============== STATIONS ===============

class KdsStation(models.Model):
    """Kitchen display showing the items of its assigned categories"""
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='kds_stations')
    area = models.ForeignKey(Area, on_delete=models.CASCADE, related_name='kds_stations')
    name = models.CharField(max_length=100)
    categories = models.ManyToManyField(
        MenuCategory, through='KdsCategoryAssignment', related_name='kds_stations', blank=True
    )

    class Meta:
        db_table = 'kds_stations'
        ordering = ['name']

    def __str__(self):
        return f"{self.area.name} - {self.name}"


class KdsCategoryAssignment(models.Model):
    kds_station = models.ForeignKey(KdsStation, on_delete=models.CASCADE, related_name='category_assignments')
    menu_category = models.ForeignKey(MenuCategory, on_delete=models.CASCADE, related_name='kds_assignments')

    class Meta:
        db_table = 'kds_category_assignments'
        unique_together = ['kds_station', 'menu_category']


class OrderKdsStationStatus(models.Model):
    order = models.ForeignKey('orders.Order', on_delete=models.CASCADE, related_name='kds_station_statuses')
    kds_station = models.ForeignKey(KdsStation, on_delete=models.CASCADE, related_name='order_statuses')
    is_confirmed = models.BooleanField(default=False)

    class Meta:
        db_table = 'order_kds_station_statuses'
        unique_together = ['order', 'kds_station']


class CashierStation(TimeStampedModel):
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='cashier_stations')
    area = models.ForeignKey(Area, on_delete=models.CASCADE, related_name='cashier_stations')
    name = models.CharField(max_length=100)
    receipt_printer = models.ForeignKey(
        Printer, on_delete=models.PROTECT, related_name='receipt_cashier_stations'
    )
    print_comandas_at_this_station = models.BooleanField(default=False)
    is_enabled = models.BooleanField(default=True)

    class Meta:
        db_table = 'cashier_stations'
        ordering = ['name']

    def __str__(self):
        return f"{self.area.name} - {self.name}"
