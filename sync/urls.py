from django.urls import path
from . import views


urlpatterns = [
    path('sync/organizations/<uuid:organization_id>/config/', views.sync_configuration, name='sync-configuration'),
    path('sync/organizations/<uuid:organization_id>/sync/menu/', views.sync_menu, name='sync-menu'),
]
