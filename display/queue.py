"""
Customer queue calling.

Customers take a numbered ticket at the entrance; cashiers call the next
number and the area display announces it.
"""
import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from authentication.exceptions import InvalidOperation
from authentication.permissions import is_super_admin
from orders.signals import broadcast_to_area, queue_event
from stations.models import CashierStation
from .models import AreaQueueState

logger = logging.getLogger(__name__)


def get_or_create_queue_state(area):
    state = AreaQueueState.objects.select_for_update().filter(area=area).first()
    if state is not None:
        return state
    try:
        with transaction.atomic():
            state = AreaQueueState.objects.create(area=area)
        logger.info(f"Created queue state for area {area.id}")
    except IntegrityError:
        logger.warning(f"Queue state for area {area.id} created concurrently, reloading")
        state = AreaQueueState.objects.select_for_update().get(area=area)
    return state


def serialize_state(area, state=None):
    if not area.enable_queue_system:
        return {'area_id': area.id, 'is_queue_system_enabled': False}
    station = state.last_called_cashier_station if state else None
    return {
        'area_id': area.id,
        'is_queue_system_enabled': True,
        'next_sequential_number': state.next_sequential_number if state else 1,
        'last_called_number': state.last_called_number if state else None,
        'last_called_cashier_station_id': station.id if station else None,
        'last_called_cashier_station_name': station.name if station else None,
        'last_call_timestamp': state.last_call_timestamp if state else None,
        'last_reset_timestamp': state.last_reset_timestamp if state else None,
    }


def get_queue_state(area):
    state = AreaQueueState.objects.select_related('last_called_cashier_station').filter(area=area).first()
    return serialize_state(area, state)


def require_queue_enabled(area):
    if not area.enable_queue_system:
        logger.warning(f"Queue operation rejected, queue system disabled for area {area.id}")
        raise InvalidOperation("Queue system is not enabled for this area.")


def get_calling_station(user, area, cashier_station_id):
    station = CashierStation.objects.filter(pk=cashier_station_id, is_enabled=True).first()
    if station is None:
        raise InvalidOperation(f"Cashier station with ID {cashier_station_id} not found or is disabled.")
    if station.area_id != area.id:
        raise InvalidOperation("Cashier station does not belong to the specified area.")
    if not is_super_admin(user) and str(station.organization_id) != str(user.organization_id):
        raise InvalidOperation(f"Cashier station with ID {cashier_station_id} not found.")
    return station


def broadcast_call(area, ticket_number, station, timestamp):
    payload = {
        'area_id': area.id,
        'ticket_number': ticket_number,
        'cashier_station_id': station.id,
        'cashier_station_name': station.name,
        'timestamp': timestamp.isoformat(),
    }
    broadcast_to_area(queue_event, area.id, 'QueueNumberCalled', payload)
    return payload


@transaction.atomic
def call_number(user, area, cashier_station_id, ticket_number=None):
    """Call ``ticket_number``, or the next sequential number when omitted"""
    station = get_calling_station(user, area, cashier_station_id)
    require_queue_enabled(area)
    if ticket_number is not None and ticket_number < 1:
        raise InvalidOperation("Ticket number must be 1 or greater.")

    state = get_or_create_queue_state(area)
    number = ticket_number if ticket_number is not None else state.next_sequential_number
    state.next_sequential_number = number + 1
    state.last_called_number = number
    state.last_called_cashier_station = station
    state.last_call_timestamp = timezone.now()
    state.save()

    logger.info(f"{user.email} at station {station.name} called number {number} in area {area.id}")
    broadcast_call(area, number, station, state.last_call_timestamp)
    return {
        'ticket_number': number,
        'cashier_station_id': station.id,
        'cashier_station_name': station.name,
    }


@transaction.atomic
def reset_queue(user, area, starting_number=1):
    if starting_number < 1:
        raise InvalidOperation("Starting number must be 1 or greater.")
    require_queue_enabled(area)

    state = get_or_create_queue_state(area)
    state.next_sequential_number = starting_number
    state.last_called_number = None
    state.last_called_cashier_station = None
    state.last_call_timestamp = None
    state.last_reset_timestamp = timezone.now()
    state.save()

    logger.info(f"Queue of area {area.id} reset to {starting_number} by {user.email}")
    broadcast_to_area(queue_event, area.id, 'QueueReset', {
        'area_id': area.id,
        'timestamp': state.last_reset_timestamp.isoformat(),
    })
    return serialize_state(area, state)


@transaction.atomic
def update_next_number(user, area, next_number):
    if next_number < 1:
        raise InvalidOperation("Next sequential number must be 1 or greater.")
    require_queue_enabled(area)

    state = get_or_create_queue_state(area)
    state.next_sequential_number = next_number
    state.save(update_fields=['next_sequential_number'])

    logger.info(f"Next number of area {area.id} set to {next_number} by {user.email}")
    data = serialize_state(area, state)
    broadcast_to_area(queue_event, area.id, 'QueueStateUpdated', data)
    return data


def toggle_queue(user, area, enable):
    area.enable_queue_system = enable
    area.save(update_fields=['enable_queue_system'])
    logger.info(f"Queue system of area {area.id} set to {enable} by {user.email}")
    return get_queue_state(area)


def respeak_last_called(user, area, cashier_station_id):
    station = get_calling_station(user, area, cashier_station_id)
    require_queue_enabled(area)

    state = AreaQueueState.objects.select_related('last_called_cashier_station').filter(area=area).first()
    if state is None or state.last_called_number is None or state.last_call_timestamp is None:
        raise InvalidOperation("No number has been called yet for this area.")

    logger.info(f"{user.email} at station {station.name} repeated number {state.last_called_number} in area {area.id}")
    called_by = state.last_called_cashier_station or station
    broadcast_call(area, state.last_called_number, called_by, state.last_call_timestamp)
    return {
        'ticket_number': state.last_called_number,
        'cashier_station_id': called_by.id,
        'cashier_station_name': called_by.name,
    }

