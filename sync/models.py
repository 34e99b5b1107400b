from django.db import models
from authentication.models import Organization, TimeStampedModel


class SyncConfiguration(TimeStampedModel):
    """Connection to the external pre-order platform, one per organization"""
    organization = models.OneToOneField(Organization, on_delete=models.CASCADE, related_name='sync_configuration')
    platform_base_url = models.URLField(max_length=500)
    api_key = models.CharField(max_length=255)
    is_enabled = models.BooleanField(default=True)

    class Meta:
        db_table = 'sync_configurations'

    def __str__(self):
        return f"{self.organization.name} -> {self.platform_base_url}"

    def endpoint(self, path):
        return f"{self.platform_base_url.rstrip('/')}{path}"
