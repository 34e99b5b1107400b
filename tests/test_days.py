from decimal import Decimal

import pytest
from django.utils import timezone

from orders.models import Day, Order


pytestmark = pytest.mark.django_db


def test_current_day_is_empty_before_opening(client_for, cashier):
    response = client_for(cashier).get('/api/days/current/')
    assert response.status_code == 204


def test_admin_opens_a_day(client_for, admin, organization):
    response = client_for(admin).post('/api/days/open/')
    assert response.status_code == 201
    assert response.data['status'] == 'Open'
    assert Day.objects.filter(organization=organization, status='Open').count() == 1


def test_only_one_day_can_be_open(client_for, admin, open_day):
    response = client_for(admin).post('/api/days/open/')
    assert response.status_code == 409
    assert response.data['message'] == 'Conflict'


def test_cashier_cannot_open_a_day(client_for, cashier):
    assert client_for(cashier).post('/api/days/open/').status_code == 403


def test_closing_a_day_sums_counted_orders_only(client_for, admin, organization, area, open_day):
    for status, amount in [
        (Order.COMPLETED, '12.50'), (Order.PAID, '7.50'),
        (Order.CANCELLED, '100.00'), (Order.PENDING, '50.00'),
    ]:
        Order.objects.create(organization=organization, area=area, day=open_day, status=status, total_amount=Decimal(amount))

    response = client_for(admin).post(f'/api/days/{open_day.id}/close/')
    assert response.status_code == 200
    assert response.data['status'] == 'Closed'
    assert Decimal(response.data['total_sales']) == Decimal('20.00')
    assert response.data['closed_by_name'] == 'Mario Rossi'


def test_closing_twice_is_invalid(client_for, admin, open_day):
    client = client_for(admin)
    assert client.post(f'/api/days/{open_day.id}/close/').status_code == 200
    assert client.post(f'/api/days/{open_day.id}/close/').status_code == 400


def test_closing_other_organization_day_is_forbidden(client_for, other_admin, open_day):
    assert client_for(other_admin).post(f'/api/days/{open_day.id}/close/').status_code == 403


def test_day_list_filters_by_date(client_for, admin, open_day):
    today = timezone.localdate(open_day.start_time).isoformat()
    response = client_for(admin).get(f'/api/days/?start_date={today}&end_date={today}')
    assert response.status_code == 200
    assert [day['id'] for day in response.data] == [open_day.id]


def test_day_detail_of_unknown_day(client_for, admin):
    response = client_for(admin).get('/api/days/9999/')
    assert response.status_code == 404
    assert response.data == {'error': 'Day not found'}
