from datetime import timedelta
from io import BytesIO

import pytest
from django.utils import timezone
from openpyxl import load_workbook

from orders.models import Day, Order, OrderItem


pytestmark = pytest.mark.django_db


def make_order(organization, area, day, status, lines, **fields):
    order = Order.objects.create(organization=organization, area=area, day=day, status=status, **fields)
    for menu_item, quantity in lines:
        OrderItem.objects.create(order=order, menu_item=menu_item, quantity=quantity, unit_price=menu_item.price)
    order.calculate_totals()
    order.save()
    return order


@pytest.fixture
def sales(organization, area, open_day, pasta, beer):
    return [
        make_order(organization, area, open_day, Order.PAID, [(pasta, 2)], number_of_guests=2, payment_method='Contanti'),
        make_order(organization, area, open_day, Order.COMPLETED, [(beer, 1)], number_of_guests=0,
                   is_takeaway=True, payment_method='POS'),
        make_order(organization, area, open_day, Order.PENDING, [(pasta, 1)]),
        make_order(organization, area, open_day, Order.CANCELLED, [(beer, 3)]),
    ]


@pytest.fixture
def analytics(client_for, admin, organization):
    client = client_for(admin)

    def get(path, **params):
        params.setdefault('organization_id', str(organization.id))
        return client.get(f'/api/analytics/{path}/', params)
    return get


def test_kpis_count_only_paid_orders(analytics, sales, open_day):
    response = analytics('dashboard/kpis')
    assert response.status_code == 200
    assert response.data['day_id'] == open_day.id
    assert response.data['today_total_sales'] == '23.00'
    assert response.data['today_order_count'] == 2
    assert response.data['average_order_value'] == '11.50'
    assert response.data['total_coperti'] == 2
    assert response.data['most_popular_category'] == 'Primi'


def test_kpis_without_any_day(analytics):
    response = analytics('dashboard/kpis')
    assert response.data['day_id'] is None
    assert response.data['today_total_sales'] == '0.00'
    assert response.data['most_popular_category'] is None


def test_kpis_fall_back_on_last_closed_day(analytics, organization, admin):
    now = timezone.now()
    Day.objects.create(organization=organization, opened_by=admin, status='Closed',
                       start_time=now - timedelta(days=2), end_time=now - timedelta(days=2))
    latest = Day.objects.create(organization=organization, opened_by=admin, status='Closed',
                                start_time=now - timedelta(days=1), end_time=now - timedelta(days=1))
    assert analytics('dashboard/kpis').data['day_id'] == latest.id


def test_kpis_of_unknown_day(analytics, other_organization):
    foreign_day = Day.objects.create(organization=other_organization, status='Open')
    assert analytics('dashboard/kpis', day_id=foreign_day.id).status_code == 404


def test_sales_trend(analytics, sales, open_day):
    response = analytics('dashboard/sales-trend', days=3)
    assert len(response.data) == 3
    assert response.data[-1]['date'] == str(timezone.localdate())
    assert response.data[-1]['sales'] == '23.00'
    assert response.data[-1]['day_id'] == open_day.id
    assert response.data[0]['sales'] == '0.00'
    assert response.data[0]['day_id'] is None


def test_order_status_distribution(analytics, sales):
    response = analytics('dashboard/order-status')
    assert [(row['status'], row['count'], row['percentage']) for row in response.data] == [
        ('Cancelled', 1, '25.00'), ('Completed', 1, '25.00'), ('Paid', 1, '25.00'), ('Pending', 1, '25.00'),
    ]


def test_top_menu_items(analytics, sales):
    response = analytics('dashboard/top-menu-items', limit=1)
    assert response.data == [
        {'item_name': 'Tagliatelle al ragù', 'category_name': 'Primi', 'quantity': 2, 'revenue': '16.00'},
    ]


def test_orders_by_hour_has_a_row_per_hour(analytics, sales):
    response = analytics('orders/by-hour')
    assert [row['hour'] for row in response.data] == list(range(24))
    assert sum(row['order_count'] for row in response.data) == 2


def test_payment_methods(analytics, sales):
    response = analytics('orders/payment-methods')
    assert [(row['payment_method'], row['amount'], row['percentage']) for row in response.data] == [
        ('Contanti', '18.00', '78.26'), ('POS', '5.00', '21.74'),
    ]


def test_average_value_trend_for_area(analytics, sales, area):
    response = analytics('orders/average-value-trend', area_id=area.id, days=1)
    assert response.data == [
        {'date': str(timezone.localdate()), 'day_id': sales[0].day_id, 'average_value': '11.50', 'order_count': 2},
    ]


def test_status_timeline_lists_every_order_of_the_day(analytics, sales):
    response = analytics('orders/status-timeline')
    assert sorted(row['status'] for row in response.data) == ['Cancelled', 'Completed', 'Paid', 'Pending']


def test_unknown_area_is_not_found(analytics, other_area):
    assert analytics('orders/by-hour', area_id=other_area.id).status_code == 404


def test_organization_id_is_required(analytics):
    response = analytics('dashboard/kpis', organization_id='')
    assert response.status_code == 400
    assert response.data['error'] is True


def test_other_organization_is_forbidden(analytics, other_organization):
    assert analytics('dashboard/kpis', organization_id=str(other_organization.id)).status_code == 403


def test_cashier_cannot_read_analytics(client_for, cashier, organization):
    response = client_for(cashier).get('/api/analytics/dashboard/kpis/', {'organization_id': str(organization.id)})
    assert response.status_code == 403


def test_daily_summary_report(analytics, sales, open_day):
    response = analytics('reports/daily-summary', day_id=open_day.id)
    assert response.status_code == 200
    assert response['Content-Disposition'] == f'attachment; filename="daily_summary_{open_day.id}.txt"'
    report = response.content.decode()
    assert 'Total Orders: 2' in report
    assert 'Total Sales: EUR 23.00' in report
    assert '- Primi: EUR 16.00' in report
    assert '- Contanti: 1 orders, Total: EUR 18.00' in report


def test_daily_summary_requires_day(analytics):
    assert analytics('reports/daily-summary').status_code == 400


def test_area_performance_text_report(analytics, sales):
    today = timezone.localdate().isoformat()
    response = analytics('reports/area-performance', start_date=today, end_date=today)
    report = response.content.decode()
    assert '- Area: Stand Gastronomico' in report
    assert '  Total Sales: EUR 23.00' in report
    assert '  Order Count: 2' in report


def test_area_performance_workbook(analytics, sales):
    today = timezone.localdate().isoformat()
    response = analytics('reports/area-performance', start_date=today, end_date=today, export='xlsx')
    assert response.status_code == 200
    assert response['Content-Disposition'].endswith('.xlsx"')
    ws = load_workbook(BytesIO(response.content)).active
    assert ws['A4'].value == 'Area'
    assert ws['A5'].value == 'Stand Gastronomico'
    assert ws['B5'].value == 23.0
    assert ws['C5'].value == 2


def test_area_performance_rejects_inverted_period(analytics):
    response = analytics('reports/area-performance', start_date='2024-09-10', end_date='2024-09-01')
    assert response.status_code == 400
    assert response.data['details'] == {'detail': 'Start date cannot be after end date.'}
