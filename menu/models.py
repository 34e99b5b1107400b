from django.db import models
from authentication.models import Organization, TimeStampedModel, unique_slug


class Area(TimeStampedModel):
    """Service area of a sagra (e.g. the main tent or the bar) with its own menu and workflow"""
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='areas')
    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=100)

    # Workflow switches
    enable_waiter_confirmation = models.BooleanField(default=False)
    enable_kds = models.BooleanField(default=False)
    enable_completion_confirmation = models.BooleanField(default=False)
    enable_queue_system = models.BooleanField(default=False)

    # Printing
    receipt_printer = models.ForeignKey(
        'stations.Printer', on_delete=models.SET_NULL, null=True, blank=True, related_name='receipt_areas'
    )
    print_comandas_at_cashier = models.BooleanField(default=False)

    # Charges
    guest_charge = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    takeaway_charge = models.DecimalField(max_digits=10, decimal_places=2, default=0)

    class Meta:
        db_table = 'areas'
        unique_together = ['organization', 'slug']
        ordering = ['name']

    def __str__(self):
        return f"{self.organization.name} - {self.name}"

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = unique_slug(Area, self.name, exclude_pk=self.pk, organization_id=self.organization_id)
        super().save(*args, **kwargs)

    @property
    def order_number_prefix(self):
        prefix = ''.join(ch for ch in self.slug.upper() if ch.isalnum())[:3]
        return prefix or 'ORD'


class MenuCategory(models.Model):
    area = models.ForeignKey(Area, on_delete=models.CASCADE, related_name='menu_categories')
    name = models.CharField(max_length=100)

    class Meta:
        db_table = 'menu_categories'
        verbose_name_plural = "Menu Categories"
        ordering = ['name']

    def __str__(self):
        return str(self.name)


class MenuItem(models.Model):
    category = models.ForeignKey(MenuCategory, on_delete=models.CASCADE, related_name='items')
    name = models.CharField(max_length=100)
    description = models.CharField(max_length=500, null=True, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    is_note_required = models.BooleanField(default=False)
    note_suggestion = models.CharField(max_length=100, null=True, blank=True)

    # Remaining portions, null means the item is not stock tracked
    scorta = models.PositiveIntegerField(null=True, blank=True)

    class Meta:
        db_table = 'menu_items'
        ordering = ['name']

    def __str__(self):
        return self.name

    @property
    def area(self):
        return self.category.area

    def has_stock_for(self, quantity):
        return self.scorta is None or self.scorta >= quantity
