from django.urls import path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView, SpectacularRedocView
from rest_framework_simplejwt.views import TokenRefreshView
from . import views

urlpatterns = [
    # =============== API DOCUMENTATION ===============
    path('schema/', SpectacularAPIView.as_view(), name='schema'),
    path('docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),

    # =============== ACCOUNTS ===============
    path('accounts/register/', views.register, name='register'),
    path('accounts/login/', views.LoginView.as_view(), name='token_obtain_pair'),
    path('accounts/refresh-token/', TokenRefreshView.as_view(), name='token_refresh'),
    path('accounts/assign-roles/', views.assign_roles, name='assign_roles'),
    path('accounts/roles/', views.RoleListCreateView.as_view(), name='role_list_create'),
    path('accounts/', views.UserListView.as_view(), name='user_list'),
    path('accounts/<uuid:user_id>/', views.UserDetailView.as_view(), name='user_detail'),

    # =============== ORGANIZATIONS ===============
    path('organizations/', views.OrganizationListCreateView.as_view(), name='organization_list_create'),
    path('organizations/<uuid:organization_id>/', views.OrganizationDetailView.as_view(), name='organization_detail'),
]
