import json
from io import StringIO

import pytest
import responses
from django.core.management import call_command
from django.core.management.base import CommandError

from orders.models import Order
from sync.models import SyncConfiguration
from sync.services import import_preorders, sync_menu


pytestmark = pytest.mark.django_db

PLATFORM = 'https://preordini.example.com'


@pytest.fixture
def sync_config(organization):
    return SyncConfiguration.objects.create(organization=organization, platform_base_url=f'{PLATFORM}/', api_key='chiave-segreta')


@pytest.fixture
def platform():
    with responses.RequestsMock() as rsps:
        yield rsps


def preorder_payload(area, item, /, **overrides):
    data = {
        'id': 'po-1',
        'customerName': 'Giulia',
        'customerEmail': 'giulia@example.com',
        'numberOfGuests': 2,
        'isTakeaway': False,
        'totalAmount': '16.00',
        'orderDateTime': '2024-09-14T19:30:00+02:00',
        'area': {'localAreaId': area.id},
        'items': [{'localMenuItemId': item.id, 'quantity': 2, 'unitPrice': '8.00', 'note': None}],
    }
    data.update(overrides)
    return data


# =============== CONFIGURATION ===============

def test_configuration_crud(client_for, admin, organization):
    client = client_for(admin)
    url = f'/api/sync/organizations/{organization.id}/config/'

    assert client.get(url).status_code == 404

    response = client.put(url, {'platform_base_url': PLATFORM, 'api_key': ' chiave '}, format='json')
    assert response.status_code == 200
    assert response.data['api_key'] == 'chiave'
    assert response.data['is_enabled'] is True

    response = client.put(url, {'platform_base_url': PLATFORM, 'api_key': 'nuova', 'is_enabled': False}, format='json')
    assert response.data['api_key'] == 'nuova'
    assert SyncConfiguration.objects.count() == 1

    assert client.delete(url).status_code == 204
    assert client.delete(url).status_code == 404


def test_configuration_rejects_blank_key(client_for, admin, organization):
    response = client_for(admin).put(
        f'/api/sync/organizations/{organization.id}/config/', {'platform_base_url': PLATFORM, 'api_key': '  '}, format='json'
    )
    assert response.status_code == 400


def test_configuration_of_other_organization_is_forbidden(client_for, other_admin, organization):
    assert client_for(other_admin).get(f'/api/sync/organizations/{organization.id}/config/').status_code == 403


# =============== MENU ===============

def test_sync_menu_posts_the_whole_menu(client_for, admin, organization, sync_config, pasta, beer, platform):
    platform.add(responses.POST, f'{PLATFORM}/api/sync/menu', json={}, status=200)

    response = client_for(admin).post(f'/api/sync/organizations/{organization.id}/sync/menu/')
    assert response.status_code == 200
    assert response.data['success'] is True

    request = platform.calls[0].request
    assert request.headers['Authorization'] == 'ApiKey chiave-segreta'
    body = json.loads(request.body)
    area = body['areas'][0]
    assert area['name'] == 'Stand Gastronomico'
    assert area['guestCharge'] == '1.00'
    items = {item['name']: item for category in area['categories'] for item in category['items']}
    assert items['Birra media']['price'] == '4.50'
    assert items['Tagliatelle al ragù']['localMenuItemId'] == pasta.id


def test_sync_menu_maps_authentication_failures(client_for, admin, organization, sync_config, area, platform):
    platform.add(responses.POST, f'{PLATFORM}/api/sync/menu', body='invalid key', status=401)

    response = client_for(admin).post(f'/api/sync/organizations/{organization.id}/sync/menu/')
    assert response.status_code == 400
    assert response.data['error_message'] == 'Authentication failed. Please check your API key.'
    assert response.data['status_code'] == 401


def test_sync_menu_with_unexpected_status(organization, sync_config, area, platform):
    platform.add(responses.POST, f'{PLATFORM}/api/sync/menu', status=418)
    result = sync_menu(organization.id)
    assert result['error_message'] == 'Unexpected error (HTTP 418).'


def test_sync_menu_when_disabled(organization, sync_config, area):
    sync_config.is_enabled = False
    sync_config.save()
    result = sync_menu(organization.id)
    assert result['success'] is False
    assert result['error_message'] == 'Sync configuration not found or disabled for this organization.'


def test_sync_menu_without_areas(organization, sync_config):
    assert sync_menu(organization.id)['error_message'] == 'No areas found for this organization.'


# =============== PRE-ORDERS ===============

def test_import_preorders(organization, sync_config, area, pasta, other_area, platform):
    Order.objects.create(organization=organization, area=area, preorder_platform_id='po-old')
    platform.add(responses.GET, f'{PLATFORM}/api/preorders/poll', json={'preOrders': [
        preorder_payload(area, pasta),
        preorder_payload(area, pasta, id='po-old'),
        preorder_payload(area, pasta, id='po-foreign', area={'localAreaId': other_area.id}),
        preorder_payload(area, pasta, id='po-empty', items=[]),
        preorder_payload(area, pasta, id='po-price', items=[{'localMenuItemId': pasta.id, 'quantity': 1, 'unitPrice': 'gratis'}]),
    ]})
    platform.add(responses.POST, f'{PLATFORM}/api/preorders/mark-fetched', json={})

    summary = import_preorders(organization)
    assert summary == {'fetched': 5, 'imported': 1, 'marked_fetched': True}

    order = Order.objects.get(preorder_platform_id='po-1')
    assert order.status == Order.PRE_ORDER
    assert order.total_amount == 16
    assert order.customer_name == 'Giulia'
    assert order.items.get().unit_price == 8
    assert json.loads(platform.calls[1].request.body) == {'preOrderIds': ['po-1']}


def test_import_keeps_platform_prices(organization, sync_config, area, pasta, platform):
    platform.add(responses.GET, f'{PLATFORM}/api/preorders/poll', json={'preOrders': [
        preorder_payload(area, pasta, totalAmount='14.00',
                         items=[{'localMenuItemId': pasta.id, 'quantity': 2, 'unitPrice': '7.00'}]),
    ]})
    platform.add(responses.POST, f'{PLATFORM}/api/preorders/mark-fetched', json={})

    import_preorders(organization)
    order = Order.objects.get(preorder_platform_id='po-1')
    assert order.total_amount == 14
    assert order.day_id is None


def test_poll_failure_imports_nothing(organization, sync_config, platform):
    platform.add(responses.GET, f'{PLATFORM}/api/preorders/poll', status=500)
    assert import_preorders(organization) == {'fetched': 0, 'imported': 0, 'marked_fetched': False}


def test_poll_command(organization, sync_config, area, pasta, platform):
    platform.add(responses.GET, f'{PLATFORM}/api/preorders/poll', json={'preOrders': [preorder_payload(area, pasta)]})
    platform.add(responses.POST, f'{PLATFORM}/api/preorders/mark-fetched', json={})

    out = StringIO()
    call_command('poll_preorders', organization=str(organization.id), stdout=out)
    assert 'Pro Loco Sagra: fetched 1, imported 1' in out.getvalue()


def test_poll_command_for_organization_without_sync(other_organization):
    with pytest.raises(CommandError):
        call_command('poll_preorders', organization=str(other_organization.id))
