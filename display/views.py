import logging

from rest_framework import generics, status
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from authentication.exceptions import InvalidOperation, ResourceNotFound
from authentication.models import Organization
from authentication.permissions import IsOrganizationAdmin, IsQueueOperator, ensure_organization_access
from authentication.serializers import OrganizationSerializer
from menu.models import Area, MenuCategory, MenuItem
from menu.serializers import MenuCategorySerializer, MenuItemSerializer, PublicAreaSerializer
from menu.services import get_accessible_area
from orders import services as order_services
from orders.serializers import OrderWithQrSerializer, PreOrderCreateSerializer, PublicOrderSerializer
from stations.models import CashierStation
from stations.serializers import PublicCashierStationSerializer
from .models import AdAreaAssignment, AdMediaItem
from .serializers import (
    AdAreaAssignmentSerializer, AdMediaItemSerializer, AdMediaItemUpdateSerializer, CallNextSerializer,
    CallSpecificSerializer, NextNumberSerializer, PublicAdSerializer, QueueStateSerializer,
    ResetQueueSerializer, ToggleQueueSerializer,
)
from . import queue

logger = logging.getLogger(__name__)


# =============== QUEUE ===============

@extend_schema(responses={200: QueueStateSerializer})
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def queue_state(request, area_id):
    area = get_accessible_area(request.user, area_id)
    return Response(QueueStateSerializer(queue.get_queue_state(area)).data)


@extend_schema(request=CallNextSerializer)
@api_view(['POST'])
@permission_classes([IsQueueOperator])
def call_next(request, area_id):
    area = get_accessible_area(request.user, area_id)
    serializer = CallNextSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    return Response(queue.call_number(request.user, area, serializer.validated_data['cashier_station_id']))


@extend_schema(request=CallSpecificSerializer)
@api_view(['POST'])
@permission_classes([IsQueueOperator])
def call_specific(request, area_id):
    area = get_accessible_area(request.user, area_id)
    serializer = CallSpecificSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    return Response(queue.call_number(
        request.user, area,
        serializer.validated_data['cashier_station_id'],
        ticket_number=serializer.validated_data['ticket_number'],
    ))


@extend_schema(request=ResetQueueSerializer, responses={200: QueueStateSerializer})
@api_view(['POST'])
@permission_classes([IsOrganizationAdmin])
def reset_queue(request, area_id):
    area = get_accessible_area(request.user, area_id)
    serializer = ResetQueueSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = queue.reset_queue(request.user, area, serializer.validated_data['starting_number'])
    return Response(QueueStateSerializer(data).data)


@extend_schema(request=NextNumberSerializer, responses={200: QueueStateSerializer})
@api_view(['PUT'])
@permission_classes([IsOrganizationAdmin])
def update_next_number(request, area_id):
    area = get_accessible_area(request.user, area_id)
    serializer = NextNumberSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = queue.update_next_number(request.user, area, serializer.validated_data['next_sequential_number'])
    return Response(QueueStateSerializer(data).data)


@extend_schema(request=ToggleQueueSerializer, responses={200: QueueStateSerializer})
@api_view(['POST'])
@permission_classes([IsOrganizationAdmin])
def toggle_queue(request, area_id):
    area = get_accessible_area(request.user, area_id)
    serializer = ToggleQueueSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = queue.toggle_queue(request.user, area, serializer.validated_data['enable'])
    return Response(QueueStateSerializer(data).data)


@extend_schema(request=CallNextSerializer)
@api_view(['POST'])
@permission_classes([IsQueueOperator])
def respeak_last_called(request, area_id):
    area = get_accessible_area(request.user, area_id)
    serializer = CallNextSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    return Response(queue.respeak_last_called(request.user, area, serializer.validated_data['cashier_station_id']))


# =============== ADS (ADMIN) ===============

class AdMediaItemListCreateView(generics.ListCreateAPIView):
    """
    get: Ad media library of an organization
    post: Upload an image or video (multipart)
    """
    serializer_class = AdMediaItemSerializer
    permission_classes = [IsOrganizationAdmin]
    parser_classes = [MultiPartParser, FormParser]
    pagination_class = None

    def get_organization(self):
        ensure_organization_access(self.request.user, self.kwargs['organization_id'])
        return generics.get_object_or_404(Organization, pk=self.kwargs['organization_id'])

    def get_queryset(self):
        return AdMediaItem.objects.filter(organization=self.get_organization())

    def perform_create(self, serializer):
        ad = serializer.save(organization=self.get_organization())
        logger.info(f"Ad {ad.name} ({ad.media_type}) uploaded for organization {ad.organization_id}")


class AdMediaItemDetailView(generics.UpdateAPIView, generics.DestroyAPIView):
    queryset = AdMediaItem.objects.all()
    serializer_class = AdMediaItemUpdateSerializer
    permission_classes = [IsOrganizationAdmin]

    def get_object(self):
        ad = super().get_object()
        ensure_organization_access(self.request.user, ad.organization_id)
        return ad

    def update(self, request, *args, **kwargs):
        super().update(request, *args, **kwargs)
        return Response(AdMediaItemSerializer(self.get_object(), context={'request': request}).data)

    def perform_destroy(self, instance):
        instance.file.delete(save=False)
        instance.delete()
        logger.info(f"Ad {instance.id} deleted")


def validate_assignment_links(user, data, instance=None):
    """The ad and the area of an assignment must belong to the same organization"""
    ad_id = data.get('ad_media_item_id', instance.ad_media_item_id if instance else None)
    area_id = data.get('area_id', instance.area_id if instance else None)
    ad = AdMediaItem.objects.filter(pk=ad_id).first()
    if ad is None:
        raise ResourceNotFound("Ad media item not found.")
    area = Area.objects.filter(pk=area_id).first()
    if area is None:
        raise ResourceNotFound("Area not found.")
    ensure_organization_access(user, ad.organization_id)
    if ad.organization_id != area.organization_id:
        raise InvalidOperation("The ad and the area must belong to the same organization.")


class AreaAdAssignmentListView(generics.ListAPIView):
    serializer_class = AdAreaAssignmentSerializer
    permission_classes = [IsOrganizationAdmin]
    pagination_class = None

    def get_queryset(self):
        area = get_accessible_area(self.request.user, self.kwargs['area_id'])
        return AdAreaAssignment.objects.filter(area=area).select_related('ad_media_item')


class AdAssignmentCreateView(generics.CreateAPIView):
    serializer_class = AdAreaAssignmentSerializer
    permission_classes = [IsOrganizationAdmin]

    def perform_create(self, serializer):
        validate_assignment_links(self.request.user, serializer.validated_data)
        assignment = serializer.save()
        logger.info(f"Ad {assignment.ad_media_item_id} assigned to area {assignment.area_id}")


class AdAssignmentDetailView(generics.UpdateAPIView, generics.DestroyAPIView):
    queryset = AdAreaAssignment.objects.select_related('ad_media_item')
    serializer_class = AdAreaAssignmentSerializer
    permission_classes = [IsOrganizationAdmin]

    def get_object(self):
        assignment = super().get_object()
        ensure_organization_access(self.request.user, assignment.ad_media_item.organization_id)
        return assignment

    def perform_update(self, serializer):
        validate_assignment_links(self.request.user, serializer.validated_data, serializer.instance)
        serializer.save()


# =============== PUBLIC ===============

def get_public_area(area_id):
    area = Area.objects.filter(pk=area_id).first()
    if area is None:
        raise ResourceNotFound(f"Area with ID {area_id} not found.")
    return area


@extend_schema(responses={200: OrganizationSerializer})
@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_organization(request, slug):
    organization = Organization.objects.filter(slug=slug).first()
    if organization is None:
        return Response({'error': 'Organization not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(OrganizationSerializer(organization).data)


@extend_schema(responses={200: PublicAreaSerializer})
@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_area(request, org_slug, area_slug):
    area = Area.objects.filter(organization__slug=org_slug, slug=area_slug).first()
    if area is None:
        return Response({'error': 'Area not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(PublicAreaSerializer(area).data)


@extend_schema(responses={200: MenuCategorySerializer(many=True)})
@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_menu_categories(request, area_id):
    area = get_public_area(area_id)
    categories = MenuCategory.objects.filter(area=area).order_by('name')
    return Response(MenuCategorySerializer(categories, many=True).data)


@extend_schema(responses={200: MenuItemSerializer(many=True)})
@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_menu_items(request, category_id):
    category = MenuCategory.objects.filter(pk=category_id).first()
    if category is None:
        return Response({'error': 'Menu category not found'}, status=status.HTTP_404_NOT_FOUND)
    items = MenuItem.objects.filter(category=category).select_related('category').order_by('name')
    return Response(MenuItemSerializer(items, many=True).data)


@extend_schema(request=PreOrderCreateSerializer, responses={201: OrderWithQrSerializer})
@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_preorder(request):
    serializer = PreOrderCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    order = order_services.create_preorder(serializer.validated_data)
    return Response(OrderWithQrSerializer(order).data, status=status.HTTP_201_CREATED)


@extend_schema(responses={200: PublicCashierStationSerializer(many=True)})
@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_cashier_stations(request, area_id):
    area = get_public_area(area_id)
    stations = CashierStation.objects.filter(area=area, is_enabled=True).order_by('name')
    return Response(PublicCashierStationSerializer(stations, many=True).data)


@extend_schema(responses={200: PublicOrderSerializer(many=True)})
@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_ready_for_pickup(request, area_id):
    orders = order_services.get_ready_for_pickup(area_id)
    return Response(PublicOrderSerializer(orders, many=True).data)


@extend_schema(responses={200: PublicAdSerializer(many=True)})
@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_ads(request, area_id):
    area = get_public_area(area_id)
    assignments = AdAreaAssignment.objects.filter(area=area, is_active=True).select_related(
        'ad_media_item'
    ).order_by('display_order')
    return Response(PublicAdSerializer(assignments, many=True, context={'request': request}).data)


@extend_schema(responses={200: QueueStateSerializer})
@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_queue_state(request, area_id):
    area = get_public_area(area_id)
    return Response(QueueStateSerializer(queue.get_queue_state(area)).data)
