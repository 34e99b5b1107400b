from rest_framework import status, generics
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi

from authentication.permissions import (
    IsCashier, IsAreaReader, IsKitchenViewer, IsKitchenOperator, IsOrganizationAdmin, IsWaiter,
    Roles, RolePermission, resolve_organization_id,
)
from authentication.exceptions import InvalidOperation, ResourceNotFound
from .serializers import (
    OrderCreateSerializer, OrderReadSerializer, OrderWithQrSerializer, ConfirmPaymentSerializer,
    ConfirmPreparationSerializer, KdsStatusUpdateSerializer, KdsOrderSerializer, ReprintSerializer,
    DaySerializer, OrderItemReadSerializer,
)
from . import days, services


class IsPickupOperator(RolePermission):
    allowed_roles = [Roles.SUPER_ADMIN, Roles.ADMIN, Roles.AREA_ADMIN, Roles.CASHIER, Roles.WAITER]


def parse_bool(value):
    return str(value).lower() in ['1', 'true', 'yes']


def parse_int(params, name):
    value = params.get(name)
    if value in (None, ''):
        return None
    try:
        return int(value)
    except ValueError:
        raise InvalidOperation(f"{name} must be an integer.")


# =============== ORDERS ===============

class OrderListCreateView(generics.ListCreateAPIView):
    """
    get: Orders of the current open day (or of ``day_id`` for admins)
    post: Create a paid order at the cashier
    """
    serializer_class = OrderReadSerializer

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsCashier()]
        return [IsAreaReader()]

    def get_queryset(self):
        params = self.request.query_params
        organization_id = resolve_organization_id(self.request)
        statuses = [s.strip() for s in params.get('statuses', '').split(',') if s.strip()]
        return services.list_orders(
            self.request.user,
            organization_id,
            area_id=parse_int(params, 'area_id'),
            statuses=statuses,
            day_id=parse_int(params, 'day_id'),
        )

    @swagger_auto_schema(
        manual_parameters=[
            openapi.Parameter('organization_id', openapi.IN_QUERY, description="Required for SuperAdmin users", type=openapi.TYPE_STRING),
            openapi.Parameter('area_id', openapi.IN_QUERY, description="Filter by area", type=openapi.TYPE_INTEGER),
            openapi.Parameter('statuses', openapi.IN_QUERY, description="Comma-separated statuses", type=openapi.TYPE_STRING),
            openapi.Parameter('day_id', openapi.IN_QUERY, description="Orders of a past day (admins only)", type=openapi.TYPE_INTEGER),
        ]
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @swagger_auto_schema(
        operation_description="Create an order at the cashier",
        request_body=OrderCreateSerializer,
        responses={201: OrderWithQrSerializer, 400: 'Bad Request', 403: 'Forbidden', 404: 'Area not found'}
    )
    def post(self, request, *args, **kwargs):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = services.create_order(request.user, serializer.validated_data)
        return Response(OrderWithQrSerializer(order).data, status=status.HTTP_201_CREATED)


@swagger_auto_schema(method='get', responses={200: OrderReadSerializer, 404: 'Order not found'})
@api_view(['GET'])
@permission_classes([IsAreaReader])
def order_detail(request, order_id):
    order = services.get_order_for_user(request.user, order_id)
    if order is None:
        return Response({'error': 'Order not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(OrderReadSerializer(order).data)


@swagger_auto_schema(method='put', request_body=ConfirmPreparationSerializer, responses={200: OrderReadSerializer})
@api_view(['PUT'])
@permission_classes([IsWaiter])
def confirm_preparation(request, order_id):
    serializer = ConfirmPreparationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    order = services.confirm_preparation(request.user, order_id, serializer.validated_data['table_number'])
    return Response(OrderReadSerializer(order).data)


@swagger_auto_schema(
    method='put',
    operation_description="Confirm payment of a pre-order, replacing its items",
    request_body=ConfirmPaymentSerializer,
    responses={200: OrderWithQrSerializer}
)
@api_view(['PUT'])
@permission_classes([IsCashier])
def confirm_payment(request, order_id):
    serializer = ConfirmPaymentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    order = services.confirm_preorder_payment(request.user, order_id, serializer.validated_data)
    return Response(OrderWithQrSerializer(order).data)


@swagger_auto_schema(method='put', request_body=None, responses={200: OrderReadSerializer})
@api_view(['PUT'])
@permission_classes([IsPickupOperator])
def confirm_pickup(request, order_id):
    order = services.confirm_pickup(request.user, order_id)
    return Response(OrderReadSerializer(order).data)


@swagger_auto_schema(method='post', request_body=ReprintSerializer)
@api_view(['POST'])
@permission_classes([IsCashier])
def reprint_order(request, order_id):
    serializer = ReprintSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    jobs = services.reprint_order(request.user, order_id, **serializer.validated_data)
    return Response({
        'message': f'{len(jobs)} print jobs queued',
        'print_job_ids': [str(job.id) for job in jobs],
    })


# =============== KDS ===============

@swagger_auto_schema(
    method='get',
    manual_parameters=[
        openapi.Parameter('include_completed', openapi.IN_QUERY, description="List orders already confirmed at this station", type=openapi.TYPE_BOOLEAN),
    ],
    responses={200: KdsOrderSerializer(many=True)}
)
@api_view(['GET'])
@permission_classes([IsKitchenViewer])
def kds_station_orders(request, station_id):
    include_completed = parse_bool(request.query_params.get('include_completed', 'false'))
    results = services.get_kds_orders(request.user, station_id, include_completed=include_completed)
    data = [{'order': order, 'items': items} for order, items in results]
    return Response(KdsOrderSerializer(data, many=True).data)


@swagger_auto_schema(method='put', request_body=KdsStatusUpdateSerializer, responses={200: OrderItemReadSerializer})
@api_view(['PUT'])
@permission_classes([IsKitchenOperator])
def update_kds_item_status(request, order_id, item_id):
    serializer = KdsStatusUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    item = services.update_kds_item_status(request.user, order_id, item_id, serializer.validated_data['kds_status'])
    return Response(OrderItemReadSerializer(item).data)


@swagger_auto_schema(method='put', request_body=None, responses={200: OrderReadSerializer})
@api_view(['PUT'])
@permission_classes([IsKitchenOperator])
def confirm_kds_completion(request, order_id, station_id):
    order = services.confirm_kds_completion(request.user, order_id, station_id)
    return Response(OrderReadSerializer(order).data)


# =============== DAYS ===============

@swagger_auto_schema(method='get', responses={200: DaySerializer, 204: 'No open day'})
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def current_day(request):
    day = days.get_current_day(request.user)
    if day is None:
        return Response(status=status.HTTP_204_NO_CONTENT)
    return Response(DaySerializer(day).data)


@swagger_auto_schema(method='post', request_body=None, responses={201: DaySerializer, 409: 'A day is already open'})
@api_view(['POST'])
@permission_classes([IsOrganizationAdmin])
def open_day(request):
    day = days.open_day(request.user)
    return Response(DaySerializer(day).data, status=status.HTTP_201_CREATED)


@swagger_auto_schema(method='post', request_body=None, responses={200: DaySerializer})
@api_view(['POST'])
@permission_classes([IsOrganizationAdmin])
def close_day(request, day_id):
    day = days.close_day(request.user, day_id)
    return Response(DaySerializer(day).data)


class DayListView(generics.ListAPIView):
    """List the organization's days, newest first"""
    serializer_class = DaySerializer
    permission_classes = [IsOrganizationAdmin]
    pagination_class = None

    def get_queryset(self):
        params = self.request.query_params
        return days.list_days(self.request.user, params.get('start_date'), params.get('end_date'))

    @swagger_auto_schema(
        manual_parameters=[
            openapi.Parameter('start_date', openapi.IN_QUERY, description="YYYY-MM-DD", type=openapi.TYPE_STRING),
            openapi.Parameter('end_date', openapi.IN_QUERY, description="YYYY-MM-DD", type=openapi.TYPE_STRING),
        ]
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


@swagger_auto_schema(method='get', responses={200: DaySerializer})
@api_view(['GET'])
@permission_classes([IsOrganizationAdmin])
def day_detail(request, day_id):
    try:
        day = days.get_day(request.user, day_id)
    except ResourceNotFound:
        return Response({'error': 'Day not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(DaySerializer(day).data)
