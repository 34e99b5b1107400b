from django.db import models
from authentication.models import Organization
from menu.models import Area
import uuid


class AreaQueueState(models.Model):
    """Ticket calling state of an area queue"""
    area = models.OneToOneField(Area, on_delete=models.CASCADE, related_name='queue_state')
    next_sequential_number = models.PositiveIntegerField(default=1)
    last_called_number = models.PositiveIntegerField(null=True, blank=True)
    last_called_cashier_station = models.ForeignKey(
        'stations.CashierStation', on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    last_call_timestamp = models.DateTimeField(null=True, blank=True)
    last_reset_timestamp = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'area_queue_states'

    def __str__(self):
        return f"Queue {self.area.name}: next {self.next_sequential_number}"


def ad_upload_path(instance, filename):
    return f"ads/{instance.organization_id}/{uuid.uuid4().hex}_{filename}"


class AdMediaItem(models.Model):
    MEDIA_TYPES = [
        ('Image', 'Image'),
        ('Video', 'Video'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='ad_media_items')
    name = models.CharField(max_length=100)
    media_type = models.CharField(max_length=10, choices=MEDIA_TYPES)
    file = models.FileField(upload_to=ad_upload_path)
    mime_type = models.CharField(max_length=100)
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'ad_media_items'
        ordering = ['-uploaded_at']

    def __str__(self):
        return f"{self.name} ({self.media_type})"


class AdAreaAssignment(models.Model):
    DEFAULT_IMAGE_DURATION = 10

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    ad_media_item = models.ForeignKey(AdMediaItem, on_delete=models.CASCADE, related_name='assignments')
    area = models.ForeignKey(Area, on_delete=models.CASCADE, related_name='ad_assignments')
    display_order = models.IntegerField(default=0)
    duration_seconds = models.PositiveIntegerField(null=True, blank=True)  # videos play to the end when null
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'ad_area_assignments'
        ordering = ['display_order']

    def __str__(self):
        return f"{self.ad_media_item.name} in {self.area.name} (#{self.display_order})"
