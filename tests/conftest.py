from decimal import Decimal

import pytest
from django.contrib.auth.models import Group
from rest_framework.test import APIClient

from authentication.models import Organization, User
from authentication.permissions import Roles
from menu.models import Area, MenuCategory, MenuItem
from orders.models import Day
from orders.signals import order_status_changed, queue_event, stock_updated
from stations.models import CashierStation, Printer


@pytest.fixture(autouse=True)
def roles(db):
    return {name: Group.objects.get_or_create(name=name)[0] for name in Roles.ALL}


@pytest.fixture
def organization(db):
    return Organization.objects.create(name="Pro Loco Sagra")


@pytest.fixture
def other_organization(db):
    return Organization.objects.create(name="Sagra del Paese Vicino")


@pytest.fixture
def make_user(roles):
    def _make_user(email, *role_names, organization=None):
        user = User.objects.create_user(
            email=email, password='Sagra-Password-2024', first_name='Mario', last_name='Rossi',
            organization=organization,
        )
        user.groups.set([roles[name] for name in role_names])
        return user
    return _make_user


@pytest.fixture
def super_admin(make_user):
    return make_user('root@sagrafacile.it', Roles.SUPER_ADMIN)


@pytest.fixture
def admin(make_user, organization):
    return make_user('admin@prolocosagra.it', Roles.ADMIN, organization=organization)


@pytest.fixture
def area_admin(make_user, organization):
    return make_user('area@prolocosagra.it', Roles.AREA_ADMIN, organization=organization)


@pytest.fixture
def cashier(make_user, organization):
    return make_user('cassa@prolocosagra.it', Roles.CASHIER, organization=organization)


@pytest.fixture
def waiter(make_user, organization):
    return make_user('cameriere@prolocosagra.it', Roles.WAITER, organization=organization)


@pytest.fixture
def preparer(make_user, organization):
    return make_user('cucina@prolocosagra.it', Roles.PREPARER, organization=organization)


@pytest.fixture
def other_admin(make_user, other_organization):
    return make_user('admin@vicino.it', Roles.ADMIN, organization=other_organization)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    def _client_for(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return _client_for


@pytest.fixture
def area(organization):
    return Area.objects.create(
        organization=organization, name="Stand Gastronomico",
        guest_charge=Decimal('1.00'), takeaway_charge=Decimal('0.50'),
    )


@pytest.fixture
def other_area(other_organization):
    return Area.objects.create(organization=other_organization, name="Bar")


@pytest.fixture
def category(area):
    return MenuCategory.objects.create(area=area, name="Primi")


@pytest.fixture
def drinks(area):
    return MenuCategory.objects.create(area=area, name="Bevande")


@pytest.fixture
def pasta(category):
    return MenuItem.objects.create(category=category, name="Tagliatelle al ragù", price=Decimal('8.00'))


@pytest.fixture
def beer(drinks):
    return MenuItem.objects.create(category=drinks, name="Birra media", price=Decimal('4.50'), scorta=10)


@pytest.fixture
def open_day(organization, admin):
    return Day.objects.create(organization=organization, opened_by=admin, status="Open")


@pytest.fixture
def printer(organization):
    return Printer.objects.create(organization=organization, name="Cassa 1", connection_string="192.168.1.50:9100")


@pytest.fixture
def cashier_station(organization, area, printer):
    return CashierStation.objects.create(organization=organization, area=area, name="Cassa 1", receipt_printer=printer)


@pytest.fixture
def broadcasts(transactional_db):
    """
    Every (group, event, payload) sent to area groups during the test.

    Broadcasts wait for the commit, so tests using this run with real transactions.
    """
    messages = []

    def collect(sender, group, event, payload, **kwargs):
        messages.append((group, event, payload))

    signals = [order_status_changed, stock_updated, queue_event]
    for signal in signals:
        signal.connect(collect, weak=False, dispatch_uid='test-broadcasts')
    yield messages
    for signal in signals:
        signal.disconnect(dispatch_uid='test-broadcasts')
