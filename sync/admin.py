from django.contrib import admin
from .models import SyncConfiguration


@admin.register(SyncConfiguration)
class SyncConfigurationAdmin(admin.ModelAdmin):
    list_display = ['organization', 'platform_base_url', 'is_enabled', 'updated_at']
    list_filter = ['is_enabled']
