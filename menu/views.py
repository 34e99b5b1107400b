from rest_framework import generics, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from django_filters import rest_framework as django_filters
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters
from drf_spectacular.utils import extend_schema

from authentication.exceptions import AccessDenied
from authentication.models import Organization
from authentication.permissions import (
    IsAreaManager, IsAreaReader, IsOrganizationAdmin,
    ensure_organization_access, is_super_admin,
)
from .models import Area, MenuCategory, MenuItem
from .serializers import AreaSerializer, MenuCategorySerializer, MenuItemSerializer, StockUpdateSerializer
from . import services


class OrganizationContextMixin:
    """Mixin to scope querysets to the user's organization"""
    organization_field = 'organization'

    def get_user_organization_id(self):
        """The user's organization, None for SuperAdmins who see every tenant"""
        user = self.request.user
        if is_super_admin(user):
            return None
        if user.organization_id is None:
            raise AccessDenied("You are not associated with any organization.")
        return user.organization_id

    def get_queryset(self):
        """Filter queryset by the user's organization"""
        queryset = super().get_queryset()
        organization_id = self.get_user_organization_id()
        if organization_id is None:
            return queryset
        return queryset.filter(**{f"{self.organization_field}_id": organization_id})

    def get_writable_object(self):
        """Unscoped lookup so that other tenants' objects answer 403 instead of 404"""
        obj = generics.get_object_or_404(self.queryset.model.objects.all(), pk=self.kwargs[self.lookup_field])
        owner = obj
        for part in self.organization_field.split('__'):
            owner = getattr(owner, part)
        ensure_organization_access(self.request.user, owner.pk)
        return obj

    def get_object(self):
        if self.request.method in ['PUT', 'PATCH', 'DELETE']:
            return self.get_writable_object()
        return super().get_object()


# Area Views
class AreaListCreateView(OrganizationContextMixin, generics.ListCreateAPIView):
    """
    get: List areas of the user's organization (all areas for SuperAdmin)
    post: Create an area (admins only)
    """
    queryset = Area.objects.select_related('organization')
    serializer_class = AreaSerializer
    pagination_class = None
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['organization']
    search_fields = ['name']
    ordering = ['name']

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsOrganizationAdmin()]
        return [IsAreaReader()]

    def perform_create(self, serializer):
        organization_id = serializer.validated_data.pop('organization_id', None) or self.request.user.organization_id
        if organization_id is None:
            raise AccessDenied("An organization is required to create an area.")
        ensure_organization_access(self.request.user, organization_id, "Cannot create an area for a different organization.")

        organization = generics.get_object_or_404(Organization, pk=organization_id)
        services.check_printer_in_organization(serializer.validated_data.get('receipt_printer_id'), organization.pk)
        serializer.save(organization=organization)


class AreaRetrieveUpdateDestroyView(OrganizationContextMixin, generics.RetrieveUpdateDestroyAPIView):
    """
    get: Area details
    put/patch: Update area settings (admins only)
    delete: Delete area (admins only)
    """
    queryset = Area.objects.select_related('organization')
    serializer_class = AreaSerializer

    def get_permissions(self):
        if self.request.method in ['PUT', 'PATCH', 'DELETE']:
            return [IsOrganizationAdmin()]
        return [IsAreaReader()]

    def perform_update(self, serializer):
        area = serializer.instance
        organization_id = serializer.validated_data.pop('organization_id', None)
        if organization_id and str(organization_id) != str(area.organization_id):
            raise AccessDenied("User is not authorized to change the area's organization.")
        services.check_printer_in_organization(serializer.validated_data.get('receipt_printer_id'), area.organization_id)

        previous_name = area.name
        area = serializer.save()
        if area.name != previous_name:
            area.slug = ''
            area.save()


# Menu Category Views
class MenuCategoryFilter(django_filters.FilterSet):
    area_id = django_filters.NumberFilter(field_name='area_id')

    class Meta:
        model = MenuCategory
        fields = []


class MenuCategoryListCreateView(OrganizationContextMixin, generics.ListCreateAPIView):
    """
    get: List menu categories, optionally for one area
    post: Create a category (area managers)
    """
    queryset = MenuCategory.objects.select_related('area')
    serializer_class = MenuCategorySerializer
    organization_field = 'area__organization'
    pagination_class = None
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = MenuCategoryFilter
    search_fields = ['name']
    ordering = ['name']

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAreaManager()]
        return [IsAreaReader()]

    def list(self, request, *args, **kwargs):
        area_id = request.query_params.get('area_id')
        if area_id:
            services.get_accessible_area(request.user, area_id)
        return super().list(request, *args, **kwargs)

    def perform_create(self, serializer):
        area = services.get_accessible_area(self.request.user, serializer.validated_data.pop('area_id'))
        serializer.save(area=area)


class MenuCategoryRetrieveUpdateDestroyView(OrganizationContextMixin, generics.RetrieveUpdateDestroyAPIView):
    queryset = MenuCategory.objects.select_related('area')
    serializer_class = MenuCategorySerializer
    organization_field = 'area__organization'

    def get_permissions(self):
        if self.request.method in ['PUT', 'PATCH', 'DELETE']:
            return [IsAreaManager()]
        return [IsAreaReader()]

    def perform_update(self, serializer):
        area_id = serializer.validated_data.pop('area_id', None)
        if area_id is not None and area_id != serializer.instance.area_id:
            serializer.save(area=services.get_accessible_area(self.request.user, area_id))
        else:
            serializer.save()


# Menu Item Views
class MenuItemFilter(django_filters.FilterSet):
    category_id = django_filters.NumberFilter(field_name='category_id')
    area_id = django_filters.NumberFilter(field_name='category__area_id')

    class Meta:
        model = MenuItem
        fields = []


class MenuItemListCreateView(OrganizationContextMixin, generics.ListCreateAPIView):
    """
    get: List menu items, optionally for one category
    post: Create a menu item (area managers)
    """
    queryset = MenuItem.objects.select_related('category__area')
    serializer_class = MenuItemSerializer
    organization_field = 'category__area__organization'
    pagination_class = None
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = MenuItemFilter
    search_fields = ['name', 'description']
    ordering_fields = ['name', 'price']
    ordering = ['name']

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAreaManager()]
        return [IsAreaReader()]

    def list(self, request, *args, **kwargs):
        category_id = request.query_params.get('category_id')
        if category_id:
            services.get_accessible_category(request.user, category_id)
        return super().list(request, *args, **kwargs)

    def perform_create(self, serializer):
        category = services.get_accessible_category(self.request.user, serializer.validated_data.pop('category_id'))
        serializer.save(category=category)


class MenuItemRetrieveUpdateDestroyView(OrganizationContextMixin, generics.RetrieveUpdateDestroyAPIView):
    queryset = MenuItem.objects.select_related('category__area')
    serializer_class = MenuItemSerializer
    organization_field = 'category__area__organization'

    def get_permissions(self):
        if self.request.method in ['PUT', 'PATCH', 'DELETE']:
            return [IsAreaManager()]
        return [IsAreaReader()]

    def perform_update(self, serializer):
        category_id = serializer.validated_data.pop('category_id', None)
        previous_scorta = serializer.instance.scorta
        if category_id is not None and category_id != serializer.instance.category_id:
            item = serializer.save(category=services.get_accessible_category(self.request.user, category_id))
        else:
            item = serializer.save()
        if item.scorta != previous_scorta:
            services.broadcast_stock(item)


# Stock endpoints
@extend_schema(request=StockUpdateSerializer, responses={200: MenuItemSerializer})
@api_view(['PUT'])
@permission_classes([IsAreaManager])
def update_menu_item_stock(request, pk):
    serializer = StockUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    item = services.update_stock(request.user, pk, serializer.validated_data['scorta'])
    return Response(MenuItemSerializer(item).data)


@extend_schema(request=None, responses={200: MenuItemSerializer})
@api_view(['POST'])
@permission_classes([IsAreaManager])
def reset_menu_item_stock(request, pk):
    item = services.reset_stock(request.user, pk)
    return Response(MenuItemSerializer(item).data)


@extend_schema(request=None)
@api_view(['POST'])
@permission_classes([IsAreaManager])
def reset_area_stock(request, area_id):
    reset_count = services.reset_area_stock(request.user, area_id)
    return Response({
        'message': f'Stock reset for {reset_count} items',
        'reset_count': reset_count,
    }, status=status.HTTP_200_OK)
