from django.urls import path
from . import views


urlpatterns = [
    # Dashboard
    path('analytics/dashboard/kpis/', views.dashboard_kpis, name='analytics-kpis'),
    path('analytics/dashboard/sales-trend/', views.sales_trend, name='analytics-sales-trend'),
    path('analytics/dashboard/order-status/', views.order_status_distribution, name='analytics-order-status'),
    path('analytics/dashboard/top-menu-items/', views.top_menu_items, name='analytics-top-menu-items'),

    # Orders
    path('analytics/orders/by-hour/', views.orders_by_hour, name='analytics-orders-by-hour'),
    path('analytics/orders/payment-methods/', views.payment_methods, name='analytics-payment-methods'),
    path('analytics/orders/average-value-trend/', views.average_value_trend, name='analytics-average-value-trend'),
    path('analytics/orders/status-timeline/', views.status_timeline, name='analytics-status-timeline'),

    # Reports
    path('analytics/reports/daily-summary/', views.daily_summary_report, name='analytics-daily-summary'),
    path('analytics/reports/area-performance/', views.area_performance_report, name='analytics-area-performance'),
]
