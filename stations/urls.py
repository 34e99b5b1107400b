from django.urls import path
from . import views

urlpatterns = [
    # KDS Stations
    path('organizations/<uuid:organization_id>/areas/<int:area_id>/kds-stations/',
         views.KdsStationListCreateView.as_view(), name='kds-station-list-create'),
    path('organizations/<uuid:organization_id>/areas/<int:area_id>/kds-stations/<int:station_id>/',
         views.KdsStationDetailView.as_view(), name='kds-station-detail'),
    path('organizations/<uuid:organization_id>/areas/<int:area_id>/kds-stations/<int:station_id>/categories/',
         views.kds_station_categories, name='kds-station-categories'),
    path('organizations/<uuid:organization_id>/areas/<int:area_id>/kds-stations/<int:station_id>/categories/<int:category_id>/',
         views.kds_station_category, name='kds-station-category'),

    # Cashier Stations
    path('cashier-stations/organization/<uuid:organization_id>/',
         views.OrganizationCashierStationListCreateView.as_view(), name='cashier-station-organization'),
    path('cashier-stations/area/<int:area_id>/', views.AreaCashierStationListView.as_view(), name='cashier-station-area'),
    path('cashier-stations/<int:pk>/', views.CashierStationDetailView.as_view(), name='cashier-station-detail'),

    # Printers
    path('printers/', views.PrinterListCreateView.as_view(), name='printer-list-create'),
    path('printers/<int:pk>/', views.PrinterDetailView.as_view(), name='printer-detail'),
    path('printers/<int:pk>/assignments/', views.printer_assignments, name='printer-assignments'),
    path('printers/<int:pk>/test-print/', views.test_print, name='printer-test-print'),

    # Print Jobs
    path('print-jobs/', views.PrintJobListView.as_view(), name='print-job-list'),
    path('print-jobs/<uuid:job_id>/retry/', views.retry_print_job, name='print-job-retry'),
    path('print-jobs/<uuid:job_id>/status/', views.update_print_job_status, name='print-job-status'),
]
