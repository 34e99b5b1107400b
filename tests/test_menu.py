import pytest

from menu.models import Area, MenuItem


pytestmark = pytest.mark.django_db


def test_admin_creates_area_in_own_organization(client_for, admin, organization):
    response = client_for(admin).post('/api/areas/', {
        'name': 'Stand Pesce', 'guest_charge': '1.50', 'enable_kds': True,
    }, format='json')
    assert response.status_code == 201
    assert response.data['slug'] == 'stand-pesce'
    assert response.data['organization_id'] == str(organization.id)


def test_admin_cannot_create_area_for_other_organization(client_for, admin, other_organization):
    response = client_for(admin).post('/api/areas/', {
        'name': 'Intrusione', 'organization_id': str(other_organization.id),
    }, format='json')
    assert response.status_code == 403
    assert not Area.objects.filter(name='Intrusione').exists()


def test_negative_charges_are_rejected(client_for, admin):
    response = client_for(admin).post('/api/areas/', {'name': 'Bar', 'guest_charge': '-1.00'}, format='json')
    assert response.status_code == 400


def test_area_list_is_scoped_to_organization(client_for, cashier, area, other_area):
    response = client_for(cashier).get('/api/areas/')
    assert response.status_code == 200
    assert [a['id'] for a in response.data] == [area.id]


def test_super_admin_sees_every_area(client_for, super_admin, area, other_area):
    response = client_for(super_admin).get('/api/areas/')
    assert {a['id'] for a in response.data} == {area.id, other_area.id}


def test_updating_area_of_other_organization_is_forbidden(client_for, admin, other_area):
    response = client_for(admin).patch(f'/api/areas/{other_area.id}/', {'name': 'Preso'}, format='json')
    assert response.status_code == 403


def test_renaming_area_regenerates_slug(client_for, admin, area):
    response = client_for(admin).patch(f'/api/areas/{area.id}/', {'name': 'Tendone Principale'}, format='json')
    assert response.status_code == 200
    area.refresh_from_db()
    assert area.slug == 'tendone-principale'


def test_receipt_printer_must_belong_to_organization(client_for, admin, area, other_organization):
    from stations.models import Printer
    foreign_printer = Printer.objects.create(organization=other_organization, name='Altrui', connection_string='10.0.0.1:9100')
    response = client_for(admin).patch(f'/api/areas/{area.id}/', {'receipt_printer_id': foreign_printer.id}, format='json')
    assert response.status_code == 400


def test_area_admin_creates_category_and_item(client_for, area_admin, area):
    client = client_for(area_admin)
    response = client.post('/api/menu-categories/', {'name': 'Dolci', 'area_id': area.id}, format='json')
    assert response.status_code == 201
    category_id = response.data['id']

    response = client.post('/api/menu-items/', {
        'name': 'Tiramisù', 'price': '4.00', 'menu_category_id': category_id, 'scorta': 20,
    }, format='json')
    assert response.status_code == 201
    assert response.data['category_name'] == 'Dolci'


def test_category_in_unknown_area_is_not_found(client_for, area_admin):
    response = client_for(area_admin).post('/api/menu-categories/', {'name': 'Dolci', 'area_id': 9999}, format='json')
    assert response.status_code == 404


def test_cashier_cannot_create_menu_items(client_for, cashier, category):
    response = client_for(cashier).post('/api/menu-items/', {
        'name': 'Gnocchi', 'price': '7.00', 'menu_category_id': category.id,
    }, format='json')
    assert response.status_code == 403


def test_menu_items_filtered_by_category(client_for, cashier, pasta, beer):
    response = client_for(cashier).get(f'/api/menu-items/?category_id={pasta.category_id}')
    assert response.status_code == 200
    assert [item['id'] for item in response.data] == [pasta.id]


def test_menu_items_of_other_organization_category_are_forbidden(client_for, admin, other_area):
    from menu.models import MenuCategory
    foreign = MenuCategory.objects.create(area=other_area, name='Panini')
    response = client_for(admin).get(f'/api/menu-items/?category_id={foreign.id}')
    assert response.status_code == 403


def test_update_stock_broadcasts_new_value(client_for, area_admin, beer, broadcasts):
    response = client_for(area_admin).put(f'/api/menu-items/{beer.id}/stock/', {'scorta': 3}, format='json')
    assert response.status_code == 200
    assert response.data['scorta'] == 3
    group, event, payload = broadcasts[-1]
    assert group == f"Area-{beer.category.area_id}"
    assert event == 'StockUpdated'
    assert payload['new_scorta'] == 3


def test_reset_area_stock_clears_tracked_items(client_for, area_admin, area, pasta, beer):
    response = client_for(area_admin).post(f'/api/areas/{area.id}/stock/reset-all/')
    assert response.status_code == 200
    assert response.data['reset_count'] == 1
    assert MenuItem.objects.get(pk=beer.pk).scorta is None
