import logging

from django.db import transaction

from authentication.exceptions import InvalidOperation, ResourceNotFound
from authentication.permissions import ensure_organization_access
from orders.signals import broadcast_to_area, stock_updated
from .models import Area, MenuCategory, MenuItem

logger = logging.getLogger(__name__)


def get_accessible_area(user, area_id):
    """Area ``area_id``: 404 when missing, 403 when it belongs to another organization"""
    try:
        area = Area.objects.select_related('organization').get(pk=area_id)
    except (Area.DoesNotExist, ValueError, TypeError):
        raise ResourceNotFound(f"Area with ID {area_id} not found.")
    ensure_organization_access(user, area.organization_id, f"Access denied to area with ID {area_id}.")
    return area


def get_accessible_category(user, category_id):
    try:
        category = MenuCategory.objects.select_related('area').get(pk=category_id)
    except (MenuCategory.DoesNotExist, ValueError, TypeError):
        raise ResourceNotFound(f"Menu Category with ID {category_id} not found.")
    ensure_organization_access(
        user, category.area.organization_id, f"Access denied to menu category with ID {category_id}."
    )
    return category


def check_printer_in_organization(printer_id, organization_id):
    """Validate an optional printer reference against the owning organization"""
    if printer_id is None:
        return None
    from stations.models import Printer

    printer = Printer.objects.filter(pk=printer_id, organization_id=organization_id).first()
    if printer is None:
        raise InvalidOperation(f"Printer with ID {printer_id} not found in this organization.")
    return printer


def broadcast_stock(item):
    broadcast_to_area(stock_updated, item.category.area_id, 'StockUpdated', {
        'menu_item_id': item.id,
        'area_id': item.category.area_id,
        'new_scorta': item.scorta,
    })


def update_stock(user, menu_item_id, scorta):
    try:
        item = MenuItem.objects.select_related('category__area').get(pk=menu_item_id)
    except MenuItem.DoesNotExist:
        raise ResourceNotFound(f"Menu Item with ID {menu_item_id} not found.")
    ensure_organization_access(user, item.category.area.organization_id)

    item.scorta = scorta
    item.save(update_fields=['scorta'])
    logger.info(f"Stock for menu item {item.id} set to {scorta}")
    broadcast_stock(item)
    return item


def reset_stock(user, menu_item_id):
    return update_stock(user, menu_item_id, None)


@transaction.atomic
def reset_area_stock(user, area_id):
    """Stop tracking stock for every item of the area, returns the number of items reset"""
    area = get_accessible_area(user, area_id)
    items = list(MenuItem.objects.select_related('category').filter(category__area=area, scorta__isnull=False))
    for item in items:
        item.scorta = None
        item.save(update_fields=['scorta'])
        broadcast_stock(item)

    logger.info(f"Reset stock of {len(items)} items in area {area.id}")
    return len(items)
