import logging

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from authentication.exceptions import AccessDenied, InvalidOperation, OperationConflict, ResourceNotFound
from authentication.permissions import ensure_organization_access
from .models import Day, Order

logger = logging.getLogger(__name__)


def get_open_day(organization_id):
    if organization_id is None:
        return None
    return Day.objects.filter(organization_id=organization_id, status="Open").order_by('-start_time').first()


def require_open_day(organization_id):
    day = get_open_day(organization_id)
    if day is None:
        raise InvalidOperation("No operational day is open. Open a day before taking orders.")
    return day


def get_current_day(user):
    return get_open_day(user.organization_id)


@transaction.atomic
def open_day(user):
    if user.organization_id is None:
        raise AccessDenied("User is not associated with any organization.")

    existing = Day.objects.select_for_update().filter(organization_id=user.organization_id, status="Open")
    if existing.exists():
        raise OperationConflict("An operational day is already open for this organization.")

    day = Day.objects.create(organization_id=user.organization_id, opened_by=user, status="Open")
    logger.info(f"Day {day.id} opened for organization {user.organization_id} by {user.email}")
    return day


def calculate_day_sales(day):
    return Order.objects.filter(day=day).exclude(
        status__in=Order.UNCOUNTED_STATUSES
    ).aggregate(total=Sum('total_amount'))['total'] or 0


@transaction.atomic
def close_day(user, day_id):
    try:
        day = Day.objects.select_for_update().get(pk=day_id)
    except Day.DoesNotExist:
        raise ResourceNotFound(f"Day with ID {day_id} not found.")

    if str(day.organization_id) != str(user.organization_id):
        raise AccessDenied("User is not authorized to close this day.")
    if day.status == "Closed":
        raise InvalidOperation(f"Day {day_id} is already closed.")

    day.total_sales = calculate_day_sales(day)
    day.status = "Closed"
    day.end_time = timezone.now()
    day.closed_by = user
    day.save()
    logger.info(f"Day {day.id} closed by {user.email} with total sales {day.total_sales}")
    return day


def list_days(user, start_date=None, end_date=None):
    queryset = Day.objects.select_related('opened_by', 'closed_by').filter(organization_id=user.organization_id)
    if start_date:
        queryset = queryset.filter(start_time__date__gte=start_date)
    if end_date:
        queryset = queryset.filter(start_time__date__lte=end_date)
    return queryset.order_by('-start_time')


def get_day(user, day_id):
    try:
        day = Day.objects.select_related('opened_by', 'closed_by').get(pk=day_id)
    except Day.DoesNotExist:
        raise ResourceNotFound(f"Day with ID {day_id} not found.")
    ensure_organization_access(user, day.organization_id, "User is not authorized to view this day.")
    return day
