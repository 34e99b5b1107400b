from django.contrib import admin
from .models import Organization, User


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'subscription_status', 'created_at']
    search_fields = ['name', 'slug']


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ['email', 'first_name', 'last_name', 'organization', 'status']
    list_filter = ['status', 'organization']
    search_fields = ['email', 'first_name', 'last_name']
