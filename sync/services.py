"""
Synchronisation with the external pre-order platform.

The menu is pushed to ``{base}/api/sync/menu``; new pre-orders are polled
from ``{base}/api/preorders/poll`` and acknowledged through
``{base}/api/preorders/mark-fetched``. Every call carries
``Authorization: ApiKey <key>``.
"""
import decimal
import logging

import requests
from django.conf import settings
from django.db import transaction
from django.utils.dateparse import parse_datetime
from django.utils.text import slugify

from menu.models import Area, MenuItem
from orders.models import Order, OrderItem
from .models import SyncConfiguration

logger = logging.getLogger(__name__)

SYNC_ERROR_MESSAGES = {
    400: "The menu data is invalid. Please check the format and try again.",
    401: "Authentication failed. Please check your API key.",
    500: "An error occurred on the pre-order platform server.",
}


def sync_result(success, error_message=None, error_details=None, status_code=None):
    return {
        'success': success,
        'error_message': error_message,
        'error_details': error_details,
        'status_code': status_code,
    }


def platform_request(config, method, path, **kwargs):
    headers = {
        'Accept': 'application/json',
        'Authorization': f"ApiKey {config.api_key}",
    }
    timeout = getattr(settings, 'SAGRAFACILE_SYNC_TIMEOUT', 30)
    return requests.request(method, config.endpoint(path), headers=headers, timeout=timeout, **kwargs)


def get_enabled_configuration(organization_id):
    return SyncConfiguration.objects.filter(organization_id=organization_id, is_enabled=True).first()


# =============== MENU ===============

def build_menu_payload(areas):
    return {
        'areas': [
            {
                'localAreaId': area.id,
                'name': area.name,
                'slug': area.slug or slugify(area.name),
                'guestCharge': str(area.guest_charge),
                'takeawayCharge': str(area.takeaway_charge),
                'categories': [
                    {
                        'localCategoryId': category.id,
                        'name': category.name,
                        'items': [
                            {
                                'localMenuItemId': item.id,
                                'name': item.name,
                                'description': item.description,
                                'price': str(item.price),
                                'isNoteRequired': item.is_note_required,
                                'noteSuggestion': item.note_suggestion,
                            }
                            for item in category.items.all()
                        ],
                    }
                    for category in area.menu_categories.all()
                ],
            }
            for area in areas
        ]
    }


def sync_menu(organization_id):
    """Push every area, category and item of the organization to the platform"""
    config = get_enabled_configuration(organization_id)
    if config is None:
        return sync_result(False, "Sync configuration not found or disabled for this organization.")

    areas = list(Area.objects.filter(organization_id=organization_id).prefetch_related('menu_categories__items'))
    if not areas:
        return sync_result(False, "No areas found for this organization.")

    try:
        response = platform_request(config, 'POST', '/api/sync/menu', json=build_menu_payload(areas))
    except requests.RequestException as exc:
        logger.error(f"Menu sync for organization {organization_id} could not reach {config.platform_base_url}: {exc}")
        return sync_result(False, "An error occurred during synchronization.", str(exc))

    if response.ok:
        logger.info(f"Menu of organization {organization_id} synced ({len(areas)} areas)")
        return sync_result(True, status_code=response.status_code)

    status_code = response.status_code
    message = SYNC_ERROR_MESSAGES.get(status_code, f"Unexpected error (HTTP {status_code}).")
    logger.error(f"Menu sync failed with status code {status_code}: {response.text}")
    return sync_result(False, message, response.text, status_code)


# =============== PRE-ORDERS ===============

def fetch_new_preorders(config):
    response = platform_request(config, 'GET', '/api/preorders/poll', params={'status': 'New'})
    if not response.ok:
        logger.error(f"Failed to fetch preorders. Status: {response.status_code}, Response: {response.text}")
        response.raise_for_status()
    return response.json().get('preOrders') or []


def parse_price(value):
    try:
        return decimal.Decimal(str(value))
    except (decimal.InvalidOperation, TypeError):
        return None


def import_preorder(organization_id, data):
    """Create a local PreOrder from a platform payload; returns None when it is skipped"""
    platform_id = data.get('id')
    if not platform_id:
        logger.error(f"Preorder without id received for organization {organization_id}, skipping")
        return None
    if Order.objects.filter(preorder_platform_id=platform_id).exists():
        logger.warning(f"Preorder {platform_id} already exists locally. Skipping import.")
        return None

    local_area_id = (data.get('area') or {}).get('localAreaId')
    area = Area.objects.filter(pk=local_area_id, organization_id=organization_id).first()
    if area is None:
        logger.error(f"Could not find local area {local_area_id} for organization {organization_id}. Skipping preorder {platform_id}.")
        return None

    items_data = data.get('items') or []
    menu_items = MenuItem.objects.select_related('category').in_bulk(
        [item.get('localMenuItemId') for item in items_data if item.get('localMenuItemId') is not None]
    )
    lines = []
    for item in items_data:
        menu_item = menu_items.get(item.get('localMenuItemId'))
        if menu_item is None or menu_item.category.area_id != area.id:
            logger.error(f"Could not find local menu item {item.get('localMenuItemId')} in area {area.id}. Skipping preorder {platform_id}.")
            return None
        unit_price = parse_price(item.get('unitPrice'))
        if unit_price is None:
            logger.error(f"Could not parse unit price {item.get('unitPrice')!r} in preorder {platform_id}. Skipping preorder.")
            return None
        quantity = int(item.get('quantity') or 0)
        if quantity < 1:
            logger.error(f"Invalid quantity {quantity} in preorder {platform_id}. Skipping preorder.")
            return None
        lines.append((menu_item, quantity, unit_price, item.get('note')))

    if not lines:
        logger.error(f"Preorder {platform_id} has no items. Skipping preorder.")
        return None

    calculated_total = sum((quantity * price for _, quantity, price, _ in lines), decimal.Decimal('0.00'))
    platform_total = parse_price(data.get('totalAmount'))
    if platform_total is None:
        logger.error(f"Could not parse total amount {data.get('totalAmount')!r} for preorder {platform_id}. Skipping import.")
        return None
    if abs(calculated_total - platform_total) > decimal.Decimal('0.01'):
        logger.warning(f"Calculated total {calculated_total} differs from platform total {platform_total} for preorder {platform_id}. Importing anyway.")

    order_fields = {}
    order_datetime = parse_datetime(data['orderDateTime']) if data.get('orderDateTime') else None
    if order_datetime is not None:
        order_fields['order_datetime'] = order_datetime

    with transaction.atomic():
        order = Order.objects.create(
            preorder_platform_id=platform_id,
            organization_id=organization_id,
            area=area,
            status=Order.PRE_ORDER,
            total_amount=calculated_total,
            customer_name=data.get('customerName'),
            customer_email=data.get('customerEmail'),
            number_of_guests=data.get('numberOfGuests') or 0,
            is_takeaway=bool(data.get('isTakeaway')),
            **order_fields,
        )
        OrderItem.objects.bulk_create([
            OrderItem(order=order, menu_item=menu_item, quantity=quantity, unit_price=price, note=note)
            for menu_item, quantity, price, note in lines
        ])

    logger.info(f"Imported preorder {platform_id} as local order {order.id}")
    return order


def mark_preorders_fetched(config, preorder_ids):
    try:
        response = platform_request(config, 'POST', '/api/preorders/mark-fetched', json={'preOrderIds': preorder_ids})
    except requests.RequestException as exc:
        logger.error(f"Error sending mark-fetched request for preorders {', '.join(preorder_ids)}: {exc}")
        return False
    if not response.ok:
        logger.error(f"Failed to mark preorders as fetched. Status: {response.status_code}, Response: {response.text}")
        return False
    logger.info(f"Marked {len(preorder_ids)} preorders as fetched")
    return True


def import_preorders(organization):
    """
    Poll the platform for new pre-orders of ``organization`` and import them.

    Returns a summary dict with the number of fetched and imported orders.
    """
    summary = {'fetched': 0, 'imported': 0, 'marked_fetched': False}
    config = get_enabled_configuration(organization.id)
    if config is None:
        logger.info(f"Sync disabled for organization {organization.id}, skipping preorder poll")
        return summary

    logger.info(f"Starting preorder poll for organization {organization.id}")
    try:
        preorders = fetch_new_preorders(config)
    except (requests.RequestException, ValueError) as exc:
        logger.error(f"Error fetching preorders for organization {organization.id} from {config.platform_base_url}: {exc}")
        return summary

    summary['fetched'] = len(preorders)
    imported_ids = []
    for data in preorders:
        try:
            order = import_preorder(organization.id, data)
        except (KeyError, TypeError, ValueError) as exc:
            logger.error(f"Error importing preorder {data.get('id')} for organization {organization.id}: {exc}")
            continue
        if order is not None:
            imported_ids.append(order.preorder_platform_id)

    summary['imported'] = len(imported_ids)
    if imported_ids:
        summary['marked_fetched'] = mark_preorders_fetched(config, imported_ids)

    logger.info(f"Finished preorder poll for organization {organization.id}. Imported {len(imported_ids)} orders.")
    return summary
