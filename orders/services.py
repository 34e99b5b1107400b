"""
Order lifecycle.

An order moves PreOrder -> Paid -> Preparing -> ReadyForPickup -> Completed,
skipping the steps its area does not use (waiter confirmation, KDS and
pickup confirmation). Every change is broadcast to the area group.
"""
import base64
import io
import logging
from collections import defaultdict

import qrcode
from django.db import transaction
from django.db.models import Q

from authentication.exceptions import AccessDenied, InvalidOperation, ResourceNotFound
from authentication.permissions import Roles, ensure_organization_access, get_user_roles, is_super_admin
from menu.models import Area, MenuItem
from menu.services import broadcast_stock, get_accessible_area
from stations.models import CashierStation, KdsCategoryAssignment, KdsStation, OrderKdsStationStatus
from stations.printing import get_printer, queue_order_print_jobs
from .days import get_open_day, require_open_day
from .models import AreaDayOrderSequence, Order, OrderItem, calculate_charges
from .signals import broadcast_to_area, order_status_changed

logger = logging.getLogger(__name__)


# =============== STATUS RULES ===============

def resolve_next_status(area, skip_waiter=False):
    """Status of an order once paid, given the steps enabled in its area"""
    if area.enable_waiter_confirmation and not skip_waiter:
        return Order.PAID
    return resolve_status_after_waiter(area)


def resolve_status_after_waiter(area):
    if area.enable_kds:
        return Order.PREPARING
    return resolve_status_after_kitchen(area)


def resolve_status_after_kitchen(area):
    if area.enable_completion_confirmation:
        return Order.READY_FOR_PICKUP
    return Order.COMPLETED


def broadcast_status(order, previous_status=None):
    broadcast_to_area(order_status_changed, order.area_id, 'OrderStatusUpdated', {
        'order_id': order.id,
        'display_order_number': order.display_order_number,
        'new_status': order.status,
        'previous_status': previous_status,
        'organization_id': str(order.organization_id),
        'area_id': order.area_id,
        'table_number': order.table_number,
        'customer_name': order.customer_name,
    })


def set_status(order, new_status, **fields):
    previous_status = order.status
    order.status = new_status
    for attr, value in fields.items():
        setattr(order, attr, value)
    order.save()
    logger.info(f"Order {order.id} moved from {previous_status} to {new_status}")
    broadcast_status(order, previous_status)
    return order


# =============== HELPERS ===============

def order_qr_code_base64(order):
    """PNG QR code of the order id, base64 encoded"""
    buffer = io.BytesIO()
    qrcode.make(order.id).save(buffer, format='PNG')
    return base64.b64encode(buffer.getvalue()).decode('ascii')


def assign_display_number(order):
    """Next ``PFX-NNN`` number of the order's area and day, must run inside a transaction"""
    sequence, _ = AreaDayOrderSequence.objects.select_for_update().get_or_create(area=order.area, day=order.day)
    sequence.last_sequence += 1
    sequence.save(update_fields=['last_sequence'])
    order.display_order_number = f"{order.area.order_number_prefix}-{sequence.last_sequence:03d}"
    return order.display_order_number


def prepare_order_lines(area, items_data, check_stock=True, lock=False):
    """
    Validate requested items against the area menu.

    Returns ``(menu_item, quantity, note)`` tuples; quantities <= 0 are dropped.
    """
    requested = [item for item in items_data if item.get('quantity', 0) > 0]
    if not requested:
        raise InvalidOperation("The order must contain at least one item with a positive quantity.")

    queryset = MenuItem.objects.select_related('category').filter(
        pk__in={item['menu_item_id'] for item in requested}, category__area=area
    )
    if lock:
        queryset = queryset.select_for_update()
    menu_items = {menu_item.pk: menu_item for menu_item in queryset}

    lines = []
    requested_quantities = defaultdict(int)
    for item in requested:
        menu_item = menu_items.get(item['menu_item_id'])
        if menu_item is None:
            raise InvalidOperation(f"Menu item with ID {item['menu_item_id']} not found in area {area.id}.")

        note = (item.get('note') or '').strip() or None
        if menu_item.is_note_required and not note:
            raise InvalidOperation(f"A note is required for menu item '{menu_item.name}'.")

        requested_quantities[menu_item.pk] += item['quantity']
        if check_stock and not menu_item.has_stock_for(requested_quantities[menu_item.pk]):
            raise InvalidOperation(
                f"Insufficient stock for '{menu_item.name}': requested {requested_quantities[menu_item.pk]}, "
                f"available {menu_item.scorta}."
            )
        lines.append((menu_item, item['quantity'], note))
    return lines


def decrement_stock(lines):
    changed = {}
    for menu_item, quantity, _ in lines:
        if menu_item.scorta is None:
            continue
        menu_item.scorta -= quantity
        changed[menu_item.pk] = menu_item
    for menu_item in changed.values():
        menu_item.save(update_fields=['scorta'])
    return list(changed.values())


def save_order_lines(order, lines):
    OrderItem.objects.bulk_create([
        OrderItem(order=order, menu_item=menu_item, quantity=quantity, unit_price=menu_item.price, note=note)
        for menu_item, quantity, note in lines
    ])


def lines_total(lines):
    return sum((menu_item.price * quantity for menu_item, quantity, _ in lines), 0)


def get_cashier_station(area, cashier_station_id):
    if cashier_station_id is None:
        return None
    station = CashierStation.objects.select_related('receipt_printer').filter(pk=cashier_station_id).first()
    if station is None or station.area_id != area.id or station.organization_id != area.organization_id:
        raise InvalidOperation(f"Cashier station {cashier_station_id} not found in area {area.id}.")
    if not station.is_enabled:
        raise InvalidOperation(f"Cashier station {station.name} is disabled.")
    return station


def get_scoped_order(user, order_id, queryset=None):
    queryset = queryset if queryset is not None else Order.objects.select_related('area', 'organization')
    order = queryset.filter(pk=order_id).first()
    if order is None:
        raise ResourceNotFound(f"Order with ID {order_id} not found.")
    ensure_organization_access(user, order.organization_id, f"User is not authorized to access order {order_id}.")
    return order


# =============== CASHIER ===============

def create_order(user, data):
    area = get_accessible_area(user, data['area_id'])

    customer_name = (data.get('customer_name') or '').strip()
    if not customer_name:
        raise InvalidOperation("Customer name is required.")

    with transaction.atomic():
        day = require_open_day(area.organization_id)
        station = get_cashier_station(area, data.get('cashier_station_id'))
        lines = prepare_order_lines(area, data.get('items', []), check_stock=True, lock=True)

        table_number = (data.get('table_number') or '').strip() or None
        waiter = None
        if table_number and area.enable_waiter_confirmation:
            # Orders taken at the table are already confirmed by whoever took them
            status = resolve_next_status(area, skip_waiter=True)
            waiter = user
        else:
            status = resolve_next_status(area)

        is_takeaway = data.get('is_takeaway', False)
        number_of_guests = data.get('number_of_guests', 1)
        order = Order(
            organization_id=area.organization_id,
            area=area,
            day=day,
            cashier=user,
            waiter=waiter,
            cashier_station=station,
            customer_name=customer_name,
            table_number=table_number,
            number_of_guests=number_of_guests,
            is_takeaway=is_takeaway,
            status=status,
            payment_method=data.get('payment_method'),
            amount_paid=data.get('amount_paid'),
            total_amount=lines_total(lines) + calculate_charges(area, is_takeaway, number_of_guests),
        )
        assign_display_number(order)
        order.save()
        save_order_lines(order, lines)
        changed_items = decrement_stock(lines)

    for menu_item in changed_items:
        broadcast_stock(menu_item)
    broadcast_status(order)

    logger.info(f"Order {order.display_order_number} ({order.id}) created by {user.email} with status {order.status}")
    queue_order_print_jobs(order)
    return order


def create_preorder(data):
    """Public pre-order, priced but neither stock checked nor bound to a day"""
    area = Area.objects.select_related('organization').filter(
        pk=data['area_id'], organization_id=data['organization_id']
    ).first()
    if area is None:
        raise ResourceNotFound(f"Area with ID {data['area_id']} not found in this organization.")

    lines = prepare_order_lines(area, data.get('items', []), check_stock=False)
    is_takeaway = data.get('is_takeaway', False)
    number_of_guests = data.get('number_of_guests', 1)

    with transaction.atomic():
        order = Order.objects.create(
            organization_id=area.organization_id,
            area=area,
            customer_name=data['customer_name'].strip(),
            customer_email=data.get('customer_email'),
            number_of_guests=number_of_guests,
            is_takeaway=is_takeaway,
            status=Order.PRE_ORDER,
            total_amount=lines_total(lines) + calculate_charges(area, is_takeaway, number_of_guests),
        )
        save_order_lines(order, lines)

    logger.info(f"Pre-order {order.id} received for area {area.id}")
    return order


def confirm_preorder_payment(user, order_id, data):
    if not (data.get('payment_method') or '').strip():
        raise InvalidOperation("Payment method is required.")

    with transaction.atomic():
        order = get_scoped_order(user, order_id, Order.objects.select_for_update().select_related('area'))
        area = order.area
        if order.status != Order.PRE_ORDER:
            raise InvalidOperation(f"Order {order_id} is not a pre-order (status: {order.status}).")

        customer_name = (data.get('customer_name') or order.customer_name or '').strip()
        if not customer_name:
            raise InvalidOperation("Customer name is required.")

        day = require_open_day(order.organization_id)
        station = get_cashier_station(area, data.get('cashier_station_id'))
        lines = prepare_order_lines(area, data.get('items', []), check_stock=True, lock=True)

        # Replace the pre-order lines with the confirmed ones
        existing = {item.menu_item_id: item for item in order.items.all()}
        kept_ids = []
        for menu_item, quantity, note in lines:
            item = existing.pop(menu_item.pk, None)
            if item is None:
                item = OrderItem(order=order, menu_item=menu_item)
            item.quantity = quantity
            item.note = note
            item.unit_price = menu_item.price
            item.save()
            kept_ids.append(item.pk)
        order.items.exclude(pk__in=kept_ids).delete()

        previous_status = order.status
        order.customer_name = customer_name
        order.number_of_guests = data.get('number_of_guests', order.number_of_guests)
        order.is_takeaway = data.get('is_takeaway', order.is_takeaway)
        order.payment_method = data['payment_method'].strip()
        order.amount_paid = data.get('amount_paid')
        order.cashier = user
        order.cashier_station = station
        order.day = day
        order.status = resolve_next_status(area)
        order.total_amount = lines_total(lines) + calculate_charges(area, order.is_takeaway, order.number_of_guests)
        assign_display_number(order)
        order.save()
        changed_items = decrement_stock(lines)

    for menu_item in changed_items:
        broadcast_stock(menu_item)
    broadcast_status(order, previous_status)

    logger.info(f"Pre-order {order.id} confirmed as {order.display_order_number} by {user.email}")
    queue_order_print_jobs(order)
    return order


def reprint_order(user, order_id, printer_id=None, include_receipt=True, include_comandas=True):
    order = get_scoped_order(user, order_id, Order.objects.select_related('area', 'organization', 'cashier_station'))
    if order.status == Order.PRE_ORDER:
        raise InvalidOperation("Pre-orders cannot be printed before payment.")
    printer = get_printer(order.organization_id, printer_id) if printer_id is not None else None
    return queue_order_print_jobs(order, printer, include_receipt=include_receipt, include_comandas=include_comandas)


# =============== LOOKUPS ===============

def get_order_for_user(user, order_id):
    """Order by id or platform pre-order id, None when not visible to the user"""
    queryset = Order.objects.select_related('area', 'cashier', 'waiter', 'day').prefetch_related('items__menu_item')
    order = queryset.filter(Q(pk=order_id) | Q(preorder_platform_id=order_id)).first()
    if order is None:
        return None

    if is_super_admin(user):
        return order
    if str(order.organization_id) != str(user.organization_id):
        return None
    if order.status != Order.PRE_ORDER:
        open_day = get_open_day(user.organization_id)
        if open_day is None or order.day_id != open_day.id:
            return None
    return order


def list_orders(user, organization_id, area_id=None, statuses=None, day_id=None):
    queryset = Order.objects.filter(organization_id=organization_id).select_related(
        'area', 'cashier', 'waiter', 'day'
    ).prefetch_related('items__menu_item')

    if day_id is not None:
        if not get_user_roles(user) & {Roles.SUPER_ADMIN, Roles.ADMIN}:
            raise AccessDenied("Only admins can query orders of a specific day.")
        queryset = queryset.filter(day_id=day_id)
    else:
        open_day = get_open_day(organization_id)
        if open_day is None:
            return Order.objects.none()
        queryset = queryset.filter(day=open_day)

    if area_id is not None:
        queryset = queryset.filter(area_id=area_id)
    if statuses:
        queryset = queryset.filter(status__in=statuses)
    return queryset.order_by('-order_datetime')


def get_ready_for_pickup(area_id):
    area = Area.objects.filter(pk=area_id).first()
    if area is None:
        raise ResourceNotFound(f"Area with ID {area_id} not found.")
    open_day = get_open_day(area.organization_id)
    if open_day is None:
        return Order.objects.none()
    return Order.objects.filter(
        area=area, day=open_day, status=Order.READY_FOR_PICKUP
    ).order_by('order_datetime')


# =============== WAITER / PICKUP ===============

@transaction.atomic
def confirm_preparation(user, order_id, table_number):
    order = get_scoped_order(user, order_id, Order.objects.select_for_update().select_related('area'))
    area = order.area
    if not area.enable_waiter_confirmation or order.status != Order.PAID:
        raise InvalidOperation(
            f"Cannot confirm preparation for order {order_id}. Current status: {order.status}. "
            f"Waiter confirmation enabled: {area.enable_waiter_confirmation}."
        )
    table_number = (table_number or '').strip()
    if not table_number:
        raise InvalidOperation("Table number is required.")

    day = require_open_day(order.organization_id)
    set_status(order, resolve_status_after_waiter(area), table_number=table_number, waiter=user, day=day)
    return order


@transaction.atomic
def confirm_pickup(user, order_id):
    order = get_scoped_order(user, order_id, Order.objects.select_for_update().select_related('area'))
    if not order.area.enable_completion_confirmation:
        raise InvalidOperation(f"Pickup confirmation is not enabled for area {order.area_id}.")
    if order.status != Order.READY_FOR_PICKUP:
        raise InvalidOperation(f"Order {order_id} is not ready for pickup (status: {order.status}).")
    set_status(order, Order.COMPLETED)
    return order


# =============== KDS ===============

def get_kds_station(user, station_id):
    station = KdsStation.objects.select_related('area').filter(pk=station_id).first()
    if station is None:
        raise ResourceNotFound(f"KDS Station with ID {station_id} not found.")
    ensure_organization_access(user, station.organization_id, f"User is not authorized to access KDS station {station_id}.")
    return station


def get_kds_orders(user, station_id, include_completed=False):
    """
    Orders of the station showing only the items it prepares.

    The active view lists Preparing orders of the open day not yet confirmed
    here, oldest first. The confirmed view lists every order this station has
    confirmed whatever its status, newest first, limited to the open day when
    one is open.

    Returns ``(order, items)`` pairs.
    """
    station = get_kds_station(user, station_id)
    category_ids = set(
        KdsCategoryAssignment.objects.filter(kds_station=station).values_list('menu_category_id', flat=True)
    )
    if not category_ids:
        return []
    open_day = get_open_day(station.organization_id)

    confirmed_order_ids = OrderKdsStationStatus.objects.filter(
        kds_station=station, is_confirmed=True
    ).values_list('order_id', flat=True)

    queryset = Order.objects.filter(
        area=station.area, items__menu_item__category_id__in=category_ids,
    ).distinct().prefetch_related('items__menu_item')
    if include_completed:
        queryset = queryset.filter(pk__in=confirmed_order_ids).order_by('-order_datetime')
        if open_day is not None:
            queryset = queryset.filter(day=open_day)
    elif open_day is None:
        return []
    else:
        queryset = queryset.filter(day=open_day, status=Order.PREPARING).exclude(
            pk__in=confirmed_order_ids
        ).order_by('order_datetime')

    results = []
    for order in queryset:
        items = [item for item in order.items.all() if item.menu_item.category_id in category_ids]
        if items:
            results.append((order, items))
    return results


def update_kds_item_status(user, order_id, item_id, kds_status):
    if kds_status not in dict(OrderItem.KDS_STATUS_CHOICES):
        raise InvalidOperation(f"Invalid KDS status '{kds_status}'.")
    item = OrderItem.objects.select_related('order').filter(pk=item_id, order_id=order_id).first()
    if item is None:
        raise ResourceNotFound(f"Order item {item_id} not found in order {order_id}.")
    ensure_organization_access(user, item.order.organization_id)

    item.kds_status = kds_status
    item.save(update_fields=['kds_status'])
    logger.info(f"Item {item_id} of order {order_id} marked {kds_status}")
    return item


@transaction.atomic
def confirm_kds_completion(user, order_id, station_id):
    order = get_scoped_order(user, order_id, Order.objects.select_for_update().select_related('area'))
    station = get_kds_station(user, station_id)
    if station.area_id != order.area_id:
        raise InvalidOperation(f"KDS station {station_id} does not belong to the area of order {order_id}.")
    if not order.area.enable_kds:
        raise InvalidOperation(f"KDS is not enabled for area {order.area_id}.")
    if order.status != Order.PREPARING:
        raise InvalidOperation(f"Order {order_id} is not in preparation (status: {order.status}).")

    items = list(order.items.select_related('menu_item'))
    order_category_ids = {item.menu_item.category_id for item in items}
    assignments = KdsCategoryAssignment.objects.filter(menu_category_id__in=order_category_ids)

    station_category_ids = {a.menu_category_id for a in assignments if a.kds_station_id == station.id}
    station_items = [item for item in items if item.menu_item.category_id in station_category_ids]
    if any(item.kds_status != 'Confirmed' for item in station_items):
        raise InvalidOperation("Not all items assigned to this KDS station are marked as confirmed.")

    station_status, _ = OrderKdsStationStatus.objects.get_or_create(order=order, kds_station=station)
    station_status.is_confirmed = True
    station_status.save(update_fields=['is_confirmed'])
    logger.info(f"KDS station {station.name} completed order {order.id}")

    relevant_station_ids = {a.kds_station_id for a in assignments}
    confirmed_station_ids = set(OrderKdsStationStatus.objects.filter(
        order=order, kds_station_id__in=relevant_station_ids, is_confirmed=True
    ).values_list('kds_station_id', flat=True))
    if relevant_station_ids - confirmed_station_ids:
        return order

    set_status(order, resolve_status_after_kitchen(order.area))
    return order
