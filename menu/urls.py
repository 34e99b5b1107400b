from django.urls import path
from . import views


urlpatterns = [
    # Areas
    path('areas/', views.AreaListCreateView.as_view(), name='area-list-create'),
    path('areas/<int:pk>/', views.AreaRetrieveUpdateDestroyView.as_view(), name='area-detail'),
    path('areas/<int:area_id>/stock/reset-all/', views.reset_area_stock, name='area-stock-reset-all'),

    # Menu Categories
    path('menu-categories/', views.MenuCategoryListCreateView.as_view(), name='menu-category-list-create'),
    path('menu-categories/<int:pk>/', views.MenuCategoryRetrieveUpdateDestroyView.as_view(), name='menu-category-detail'),

    # Menu Items
    path('menu-items/', views.MenuItemListCreateView.as_view(), name='menu-item-list-create'),
    path('menu-items/<int:pk>/', views.MenuItemRetrieveUpdateDestroyView.as_view(), name='menu-item-detail'),
    path('menu-items/<int:pk>/stock/', views.update_menu_item_stock, name='menu-item-stock'),
    path('menu-items/<int:pk>/stock/reset/', views.reset_menu_item_stock, name='menu-item-stock-reset'),
]
