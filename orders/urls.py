from django.urls import path
from . import views

urlpatterns = [
    # =============== ORDERS ===============
    path('orders/', views.OrderListCreateView.as_view(), name='order-list-create'),
    path('orders/kds-station/<int:station_id>/', views.kds_station_orders, name='kds-station-orders'),
    path('orders/<str:order_id>/', views.order_detail, name='order-detail'),
    path('orders/<str:order_id>/confirm-preparation/', views.confirm_preparation, name='order-confirm-preparation'),
    path('orders/<str:order_id>/confirm-payment/', views.confirm_payment, name='order-confirm-payment'),
    path('orders/<str:order_id>/confirm-pickup/', views.confirm_pickup, name='order-confirm-pickup'),
    path('orders/<str:order_id>/reprint/', views.reprint_order, name='order-reprint'),
    path('orders/<str:order_id>/items/<int:item_id>/kds-status/', views.update_kds_item_status, name='order-item-kds-status'),
    path('orders/<str:order_id>/kds-confirm-complete/<int:station_id>/', views.confirm_kds_completion, name='order-kds-confirm-complete'),

    # =============== DAYS ===============
    path('days/', views.DayListView.as_view(), name='day-list'),
    path('days/current/', views.current_day, name='day-current'),
    path('days/open/', views.open_day, name='day-open'),
    path('days/<int:day_id>/', views.day_detail, name='day-detail'),
    path('days/<int:day_id>/close/', views.close_day, name='day-close'),
]
