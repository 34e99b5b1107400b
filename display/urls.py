from django.urls import path
from . import views

urlpatterns = [
    # =============== QUEUE ===============
    path('areas/<int:area_id>/queue/state/', views.queue_state, name='queue-state'),
    path('areas/<int:area_id>/queue/call-next/', views.call_next, name='queue-call-next'),
    path('areas/<int:area_id>/queue/call-specific/', views.call_specific, name='queue-call-specific'),
    path('areas/<int:area_id>/queue/reset/', views.reset_queue, name='queue-reset'),
    path('areas/<int:area_id>/queue/next-sequential-number/', views.update_next_number, name='queue-next-number'),
    path('areas/<int:area_id>/queue/toggle/', views.toggle_queue, name='queue-toggle'),
    path('areas/<int:area_id>/queue/respeak-last-called/', views.respeak_last_called, name='queue-respeak'),

    # =============== ADS ===============
    path('admin/organizations/<uuid:organization_id>/ads/', views.AdMediaItemListCreateView.as_view(), name='ad-list-create'),
    path('admin/ads/<uuid:pk>/', views.AdMediaItemDetailView.as_view(), name='ad-detail'),
    path('admin/areas/<int:area_id>/ad-assignments/', views.AreaAdAssignmentListView.as_view(), name='area-ad-assignments'),
    path('admin/ad-assignments/', views.AdAssignmentCreateView.as_view(), name='ad-assignment-create'),
    path('admin/ad-assignments/<uuid:pk>/', views.AdAssignmentDetailView.as_view(), name='ad-assignment-detail'),

    # =============== PUBLIC ===============
    path('public/organizations/<slug:slug>/', views.public_organization, name='public-organization'),
    path('public/organizations/<slug:org_slug>/areas/<slug:area_slug>/', views.public_area, name='public-area'),
    path('public/areas/<int:area_id>/menu-categories/', views.public_menu_categories, name='public-menu-categories'),
    path('public/menu-categories/<int:category_id>/menu-items/', views.public_menu_items, name='public-menu-items'),
    path('public/preorders/', views.public_preorder, name='public-preorder'),
    path('public/areas/<int:area_id>/cashier-stations/', views.public_cashier_stations, name='public-cashier-stations'),
    path('public/areas/<int:area_id>/orders/ready-for-pickup/', views.public_ready_for_pickup, name='public-ready-for-pickup'),
    path('public/areas/<int:area_id>/ads/', views.public_ads, name='public-ads'),
    path('public/areas/<int:area_id>/queue/state/', views.public_queue_state, name='public-queue-state'),
]
