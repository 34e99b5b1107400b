import logging

from django.http import HttpResponse
from django.utils.dateparse import parse_date
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter

from authentication.exceptions import InvalidOperation
from authentication.permissions import IsOrganizationAdmin, ensure_organization_access
from . import services
from .serializers import (
    AverageValueTrendSerializer, HourlyOrdersSerializer, KpiSerializer, OrderStatusSerializer,
    PaymentMethodSerializer, SalesTrendSerializer, StatusTimelineSerializer, TopMenuItemSerializer,
)

logger = logging.getLogger(__name__)

ORGANIZATION_PARAM = OpenApiParameter('organization_id', str, required=True, description='Organization to analyse')
AREA_PARAM = OpenApiParameter('area_id', int, description='Limit to one area')
DAY_PARAM = OpenApiParameter('day_id', int, description='Defaults to the open day, else the last closed one')
DAYS_PARAM = OpenApiParameter('days', int, description='Number of calendar days, default 7')


def get_organization_id(request):
    organization_id = request.query_params.get('organization_id')
    if not organization_id:
        raise InvalidOperation('organization_id is required.')
    ensure_organization_access(request.user, organization_id)
    return organization_id


def int_param(request, name, default=None, minimum=1):
    value = request.query_params.get(name)
    if value in (None, ''):
        return default
    try:
        number = int(value)
    except ValueError:
        raise InvalidOperation(f"{name} must be an integer.")
    if number < minimum:
        raise InvalidOperation(f"{name} must be {minimum} or greater.")
    return number


def date_param(request, name):
    value = request.query_params.get(name)
    parsed = parse_date(value) if value else None
    if parsed is None:
        raise InvalidOperation(f"{name} is required in YYYY-MM-DD format.")
    return parsed


# =============== DASHBOARD ===============

@extend_schema(parameters=[ORGANIZATION_PARAM, DAY_PARAM], responses={200: KpiSerializer})
@api_view(['GET'])
@permission_classes([IsOrganizationAdmin])
def dashboard_kpis(request):
    organization_id = get_organization_id(request)
    data = services.get_kpis(organization_id, int_param(request, 'day_id'))
    return Response(KpiSerializer(data).data)


@extend_schema(parameters=[ORGANIZATION_PARAM, DAYS_PARAM], responses={200: SalesTrendSerializer(many=True)})
@api_view(['GET'])
@permission_classes([IsOrganizationAdmin])
def sales_trend(request):
    organization_id = get_organization_id(request)
    data = services.get_sales_trend(organization_id, int_param(request, 'days', 7))
    return Response(SalesTrendSerializer(data, many=True).data)


@extend_schema(parameters=[ORGANIZATION_PARAM, DAY_PARAM], responses={200: OrderStatusSerializer(many=True)})
@api_view(['GET'])
@permission_classes([IsOrganizationAdmin])
def order_status_distribution(request):
    organization_id = get_organization_id(request)
    data = services.get_order_status_distribution(organization_id, int_param(request, 'day_id'))
    return Response(OrderStatusSerializer(data, many=True).data)


@extend_schema(
    parameters=[ORGANIZATION_PARAM, DAYS_PARAM, OpenApiParameter('limit', int, description='Default 5')],
    responses={200: TopMenuItemSerializer(many=True)},
)
@api_view(['GET'])
@permission_classes([IsOrganizationAdmin])
def top_menu_items(request):
    organization_id = get_organization_id(request)
    data = services.get_top_menu_items(
        organization_id, days=int_param(request, 'days', 7), limit=int_param(request, 'limit', 5)
    )
    return Response(TopMenuItemSerializer(data, many=True).data)


# =============== ORDERS ===============

@extend_schema(parameters=[ORGANIZATION_PARAM, AREA_PARAM, DAY_PARAM], responses={200: HourlyOrdersSerializer(many=True)})
@api_view(['GET'])
@permission_classes([IsOrganizationAdmin])
def orders_by_hour(request):
    organization_id = get_organization_id(request)
    data = services.get_orders_by_hour(organization_id, int_param(request, 'area_id'), int_param(request, 'day_id'))
    return Response(HourlyOrdersSerializer(data, many=True).data)


@extend_schema(parameters=[ORGANIZATION_PARAM, AREA_PARAM, DAY_PARAM], responses={200: PaymentMethodSerializer(many=True)})
@api_view(['GET'])
@permission_classes([IsOrganizationAdmin])
def payment_methods(request):
    organization_id = get_organization_id(request)
    data = services.get_payment_method_distribution(
        organization_id, int_param(request, 'area_id'), int_param(request, 'day_id')
    )
    return Response(PaymentMethodSerializer(data, many=True).data)


@extend_schema(parameters=[ORGANIZATION_PARAM, AREA_PARAM, DAYS_PARAM], responses={200: AverageValueTrendSerializer(many=True)})
@api_view(['GET'])
@permission_classes([IsOrganizationAdmin])
def average_value_trend(request):
    organization_id = get_organization_id(request)
    data = services.get_average_value_trend(
        organization_id, int_param(request, 'area_id'), days=int_param(request, 'days', 7)
    )
    return Response(AverageValueTrendSerializer(data, many=True).data)


@extend_schema(parameters=[ORGANIZATION_PARAM, AREA_PARAM, DAY_PARAM], responses={200: StatusTimelineSerializer(many=True)})
@api_view(['GET'])
@permission_classes([IsOrganizationAdmin])
def status_timeline(request):
    organization_id = get_organization_id(request)
    data = services.get_order_status_timeline(
        organization_id, int_param(request, 'area_id'), int_param(request, 'day_id')
    )
    return Response(StatusTimelineSerializer(data, many=True).data)


# =============== REPORTS ===============

@extend_schema(
    parameters=[ORGANIZATION_PARAM, OpenApiParameter('day_id', int, required=True)],
    responses={(200, 'text/plain'): str},
)
@api_view(['GET'])
@permission_classes([IsOrganizationAdmin])
def daily_summary_report(request):
    organization_id = get_organization_id(request)
    day_id = int_param(request, 'day_id')
    if day_id is None:
        raise InvalidOperation('day_id is required.')

    report = services.daily_summary_report(organization_id, day_id)
    response = HttpResponse(report, content_type='text/plain; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="daily_summary_{day_id}.txt"'
    return response


@extend_schema(
    parameters=[
        ORGANIZATION_PARAM,
        OpenApiParameter('start_date', str, required=True, description='YYYY-MM-DD'),
        OpenApiParameter('end_date', str, required=True, description='YYYY-MM-DD'),
        OpenApiParameter('export', str, description="'xlsx' for an Excel workbook, plain text otherwise"),
    ],
    responses={(200, 'text/plain'): str},
)
@api_view(['GET'])
@permission_classes([IsOrganizationAdmin])
def area_performance_report(request):
    organization_id = get_organization_id(request)
    start_date = date_param(request, 'start_date')
    end_date = date_param(request, 'end_date')

    if request.query_params.get('export') == 'xlsx':
        wb = services.area_performance_workbook(organization_id, start_date, end_date)
        response = HttpResponse(content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet')
        response['Content-Disposition'] = f'attachment; filename="area_performance_{start_date}_{end_date}.xlsx"'
        wb.save(response)
        return response

    report = services.area_performance_report(organization_id, start_date, end_date)
    response = HttpResponse(report, content_type='text/plain; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="area_performance_{start_date}_{end_date}.txt"'
    return response
