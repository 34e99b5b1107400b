import logging

from django.db import IntegrityError, transaction
from rest_framework import generics, status, filters
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, OpenApiParameter

from authentication.exceptions import AccessDenied, InvalidOperation, OperationConflict, ResourceNotFound
from authentication.models import Organization
from authentication.permissions import (
    IsAreaManager, IsAreaReader, IsOrganizationAdmin, ensure_organization_access, resolve_organization_id,
)
from menu.models import Area, MenuCategory
from menu.serializers import MenuCategorySerializer
from menu.views import OrganizationContextMixin
from .models import CashierStation, KdsCategoryAssignment, KdsStation, PrintJob, Printer, PrinterCategoryAssignment
from .serializers import (
    CashierStationSerializer, KdsStationSerializer, PrintJobSerializer, PrintJobStatusSerializer,
    PrinterAssignmentSerializer, PrinterSerializer,
)
from . import printing

logger = logging.getLogger(__name__)


def get_organization_area(user, organization_id, area_id):
    ensure_organization_access(user, organization_id)
    area = Area.objects.filter(pk=area_id, organization_id=organization_id).first()
    if area is None:
        raise ResourceNotFound(f"Area with ID {area_id} not found in organization {organization_id}.")
    return area


def get_area_kds_station(area, station_id):
    station = KdsStation.objects.filter(pk=station_id, area=area).first()
    if station is None:
        raise ResourceNotFound(f"KDS Station with ID {station_id} not found in area {area.id}.")
    return station


# =============== KDS STATIONS ===============

class KdsStationListCreateView(generics.ListCreateAPIView):
    """
    get: KDS stations of an area
    post: Create a KDS station (admins only)
    """
    serializer_class = KdsStationSerializer
    pagination_class = None

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsOrganizationAdmin()]
        return [IsAreaManager()]

    def get_area(self):
        return get_organization_area(self.request.user, self.kwargs['organization_id'], self.kwargs['area_id'])

    def get_queryset(self):
        return KdsStation.objects.filter(area=self.get_area()).order_by('name')

    def perform_create(self, serializer):
        area = self.get_area()
        station = serializer.save(area=area, organization_id=area.organization_id)
        logger.info(f"KDS station {station.name} created in area {area.id}")


class KdsStationDetailView(generics.RetrieveUpdateDestroyAPIView):
    serializer_class = KdsStationSerializer

    def get_permissions(self):
        if self.request.method in ['PUT', 'PATCH', 'DELETE']:
            return [IsOrganizationAdmin()]
        return [IsAreaManager()]

    def get_object(self):
        area = get_organization_area(self.request.user, self.kwargs['organization_id'], self.kwargs['area_id'])
        return get_area_kds_station(area, self.kwargs['station_id'])


@extend_schema(responses={200: MenuCategorySerializer(many=True)})
@api_view(['GET'])
@permission_classes([IsAreaManager])
def kds_station_categories(request, organization_id, area_id, station_id):
    area = get_organization_area(request.user, organization_id, area_id)
    station = get_area_kds_station(area, station_id)
    categories = MenuCategory.objects.filter(kds_assignments__kds_station=station).order_by('name')
    return Response(MenuCategorySerializer(categories, many=True).data)


@extend_schema(request=None)
@api_view(['POST', 'DELETE'])
@permission_classes([IsOrganizationAdmin])
def kds_station_category(request, organization_id, area_id, station_id, category_id):
    """Assign (POST) or unassign (DELETE) a menu category to a KDS station"""
    area = get_organization_area(request.user, organization_id, area_id)
    station = get_area_kds_station(area, station_id)

    if request.method == 'DELETE':
        deleted, _ = KdsCategoryAssignment.objects.filter(kds_station=station, menu_category_id=category_id).delete()
        if not deleted:
            raise ResourceNotFound(f"Category {category_id} is not assigned to KDS station {station_id}.")
        logger.info(f"Category {category_id} unassigned from KDS station {station.id}")
        return Response(status=status.HTTP_204_NO_CONTENT)

    category = MenuCategory.objects.filter(pk=category_id, area=area).first()
    if category is None:
        raise ResourceNotFound(f"Menu Category with ID {category_id} not found in area {area.id}.")
    if KdsCategoryAssignment.objects.filter(kds_station=station, menu_category=category).exists():
        raise OperationConflict(f"Category {category_id} is already assigned to KDS station {station_id}.")
    try:
        with transaction.atomic():
            KdsCategoryAssignment.objects.create(kds_station=station, menu_category=category)
    except IntegrityError:
        raise OperationConflict(f"Category {category_id} is already assigned to KDS station {station_id}.")

    logger.info(f"Category {category_id} assigned to KDS station {station.id}")
    return Response({'message': 'Category assigned successfully'}, status=status.HTTP_201_CREATED)


# =============== CASHIER STATIONS ===============

def validate_cashier_station_links(data, organization_id):
    """The area and receipt printer of a cashier station must belong to its organization"""
    if 'area_id' in data and not Area.objects.filter(pk=data['area_id'], organization_id=organization_id).exists():
        raise InvalidOperation(f"Area with ID {data['area_id']} not found in this organization.")
    if 'receipt_printer_id' in data:
        printing.get_printer(organization_id, data['receipt_printer_id'])


class OrganizationCashierStationListCreateView(generics.ListCreateAPIView):
    """
    get: Cashier stations of an organization
    post: Create a cashier station (admins only)
    """
    serializer_class = CashierStationSerializer
    pagination_class = None

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsOrganizationAdmin()]
        return [IsAreaManager()]

    def get_queryset(self):
        organization_id = self.kwargs['organization_id']
        ensure_organization_access(self.request.user, organization_id)
        return CashierStation.objects.filter(organization_id=organization_id).select_related('area', 'receipt_printer')

    def perform_create(self, serializer):
        organization_id = self.kwargs['organization_id']
        ensure_organization_access(self.request.user, organization_id)
        validate_cashier_station_links(serializer.validated_data, organization_id)
        station = serializer.save(organization_id=organization_id)
        logger.info(f"Cashier station {station.name} created in area {station.area_id}")


class AreaCashierStationListView(generics.ListAPIView):
    serializer_class = CashierStationSerializer
    permission_classes = [IsAreaReader]
    pagination_class = None

    def get_queryset(self):
        area = Area.objects.filter(pk=self.kwargs['area_id']).first()
        if area is None:
            raise ResourceNotFound(f"Area with ID {self.kwargs['area_id']} not found.")
        ensure_organization_access(self.request.user, area.organization_id)
        return CashierStation.objects.filter(area=area).select_related('area', 'receipt_printer')


class CashierStationDetailView(OrganizationContextMixin, generics.RetrieveUpdateDestroyAPIView):
    queryset = CashierStation.objects.select_related('area', 'receipt_printer')
    serializer_class = CashierStationSerializer

    def get_permissions(self):
        if self.request.method in ['PUT', 'PATCH', 'DELETE']:
            return [IsOrganizationAdmin()]
        return [IsAreaReader()]

    def perform_update(self, serializer):
        validate_cashier_station_links(serializer.validated_data, serializer.instance.organization_id)
        serializer.save()


# =============== PRINTERS ===============

class PrinterListCreateView(OrganizationContextMixin, generics.ListCreateAPIView):
    """
    get: Printers of the organization
    post: Register a printer
    """
    queryset = Printer.objects.all()
    serializer_class = PrinterSerializer
    permission_classes = [IsOrganizationAdmin]
    pagination_class = None
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['type', 'is_enabled']
    search_fields = ['name']
    ordering = ['name']

    def get_queryset(self):
        organization_id = resolve_organization_id(self.request, required_for_super_admin=False)
        queryset = Printer.objects.all()
        if organization_id:
            queryset = queryset.filter(organization_id=organization_id)
        return queryset

    def perform_create(self, serializer):
        organization_id = serializer.validated_data.pop('organization_id', None) or self.request.user.organization_id
        if organization_id is None:
            raise InvalidOperation("organization_id is required to create a printer.")
        ensure_organization_access(self.request.user, organization_id, "Cannot create a printer for a different organization.")
        organization = generics.get_object_or_404(Organization, pk=organization_id)
        printer = serializer.save(organization=organization)
        logger.info(f"Printer {printer.name} registered for organization {organization.id}")


class PrinterDetailView(OrganizationContextMixin, generics.RetrieveUpdateDestroyAPIView):
    queryset = Printer.objects.all()
    serializer_class = PrinterSerializer
    permission_classes = [IsOrganizationAdmin]

    def perform_update(self, serializer):
        organization_id = serializer.validated_data.pop('organization_id', None)
        if organization_id and str(organization_id) != str(serializer.instance.organization_id):
            raise AccessDenied("User is not authorized to move the printer to another organization.")
        serializer.save()

    def perform_destroy(self, instance):
        if CashierStation.objects.filter(receipt_printer=instance).exists():
            raise InvalidOperation("Printer is the receipt printer of a cashier station and cannot be deleted.")
        instance.delete()


def get_accessible_printer(user, printer_id):
    printer = Printer.objects.filter(pk=printer_id).first()
    if printer is None:
        raise ResourceNotFound(f"Printer with ID {printer_id} not found.")
    ensure_organization_access(user, printer.organization_id)
    return printer


@extend_schema(
    parameters=[OpenApiParameter('area_id', int, description='Limit to the categories of one area')],
    request=PrinterAssignmentSerializer,
)
@api_view(['GET', 'POST'])
@permission_classes([IsOrganizationAdmin])
def printer_assignments(request, pk):
    """
    GET lists the menu category ids routed to the printer.
    POST replaces them (within ``area_id`` when given).
    """
    printer = get_accessible_printer(request.user, pk)
    area_id = request.query_params.get('area_id')
    assignments = PrinterCategoryAssignment.objects.filter(printer=printer)
    if area_id:
        assignments = assignments.filter(menu_category__area_id=area_id)

    if request.method == 'GET':
        return Response(sorted(assignments.values_list('menu_category_id', flat=True)))

    serializer = PrinterAssignmentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    category_ids = set(serializer.validated_data['category_ids'])

    categories = MenuCategory.objects.filter(pk__in=category_ids, area__organization_id=printer.organization_id)
    if area_id:
        categories = categories.filter(area_id=area_id)
    if categories.count() != len(category_ids):
        raise InvalidOperation("Some categories are not valid for this printer's organization.")

    with transaction.atomic():
        assignments.delete()
        PrinterCategoryAssignment.objects.bulk_create([
            PrinterCategoryAssignment(printer=printer, menu_category=category) for category in categories
        ])

    logger.info(f"Printer {printer.id} now prints categories {sorted(category_ids)}")
    return Response(sorted(category_ids))


@extend_schema(request=None, responses={201: PrintJobSerializer})
@api_view(['POST'])
@permission_classes([IsOrganizationAdmin])
def test_print(request, pk):
    printer = get_accessible_printer(request.user, pk)
    if not printer.is_enabled:
        raise InvalidOperation(f"Printer {printer.name} is disabled.")
    job = printing.queue_test_print(printer)
    return Response(PrintJobSerializer(job).data, status=status.HTTP_201_CREATED)


# =============== PRINT JOBS ===============

class PrintJobListView(OrganizationContextMixin, generics.ListAPIView):
    """Print jobs of the organization, newest first"""
    queryset = PrintJob.objects.select_related('printer', 'order')
    serializer_class = PrintJobSerializer
    permission_classes = [IsOrganizationAdmin]
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['status', 'job_type', 'printer', 'area']
    ordering = ['-created_at']


def get_accessible_print_job(user, job_id):
    job = PrintJob.objects.select_related('printer').filter(pk=job_id).first()
    if job is None:
        raise ResourceNotFound(f"Print job {job_id} not found.")
    ensure_organization_access(user, job.organization_id)
    return job


@extend_schema(request=None, responses={200: PrintJobSerializer})
@api_view(['POST'])
@permission_classes([IsOrganizationAdmin])
def retry_print_job(request, job_id):
    job = printing.retry_print_job(get_accessible_print_job(request.user, job_id))
    return Response(PrintJobSerializer(job).data)


@extend_schema(request=PrintJobStatusSerializer, responses={200: PrintJobSerializer})
@api_view(['POST'])
@permission_classes([IsOrganizationAdmin])
def update_print_job_status(request, job_id):
    job = get_accessible_print_job(request.user, job_id)
    serializer = PrintJobStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    job = printing.update_print_job_status(job, **serializer.validated_data)
    return Response(PrintJobSerializer(job).data)
