import pytest
from django.db import transaction

from display import queue
from display.models import AreaQueueState
from orders.signals import last_message


pytestmark = pytest.mark.django_db


@pytest.fixture
def queue_area(area):
    area.enable_queue_system = True
    area.save()
    return area


def test_call_next_increments_the_queue(client_for, cashier, queue_area, cashier_station, broadcasts):
    client = client_for(cashier)
    url = f'/api/areas/{queue_area.id}/queue/call-next/'

    first = client.post(url, {'cashier_station_id': cashier_station.id}, format='json')
    second = client.post(url, {'cashier_station_id': cashier_station.id}, format='json')
    assert first.status_code == 200
    assert first.data['ticket_number'] == 1
    assert second.data['ticket_number'] == 2
    assert second.data['cashier_station_name'] == 'Cassa 1'

    state = AreaQueueState.objects.get(area=queue_area)
    assert state.next_sequential_number == 3
    assert state.last_called_number == 2

    group, event, payload = broadcasts[-1]
    assert (group, event) == (f"Area-{queue_area.id}", 'QueueNumberCalled')
    assert payload['ticket_number'] == 2
    assert last_message(queue_area.id, 'QueueNumberCalled')['ticket_number'] == 2


def test_call_specific_moves_next_number(client_for, cashier, queue_area, cashier_station):
    client = client_for(cashier)
    response = client.post(f'/api/areas/{queue_area.id}/queue/call-specific/', {
        'cashier_station_id': cashier_station.id, 'ticket_number': 42,
    }, format='json')
    assert response.data['ticket_number'] == 42
    response = client.post(f'/api/areas/{queue_area.id}/queue/call-next/', {'cashier_station_id': cashier_station.id}, format='json')
    assert response.data['ticket_number'] == 43


def test_calling_with_queue_disabled_is_invalid(client_for, cashier, area, cashier_station):
    response = client_for(cashier).post(f'/api/areas/{area.id}/queue/call-next/', {'cashier_station_id': cashier_station.id}, format='json')
    assert response.status_code == 400


def test_calling_from_station_of_another_area_is_invalid(client_for, cashier, queue_area, organization, printer):
    from menu.models import Area
    from stations.models import CashierStation
    bar = Area.objects.create(organization=organization, name='Bar')
    station = CashierStation.objects.create(organization=organization, area=bar, name='Cassa Bar', receipt_printer=printer)
    response = client_for(cashier).post(f'/api/areas/{queue_area.id}/queue/call-next/', {'cashier_station_id': station.id}, format='json')
    assert response.status_code == 400


def test_reset_queue(client_for, cashier, admin, queue_area, cashier_station, broadcasts):
    client_for(cashier).post(f'/api/areas/{queue_area.id}/queue/call-next/', {'cashier_station_id': cashier_station.id}, format='json')

    response = client_for(admin).post(f'/api/areas/{queue_area.id}/queue/reset/', {'starting_number': 100}, format='json')
    assert response.status_code == 200
    assert response.data['next_sequential_number'] == 100
    assert response.data['last_called_number'] is None
    assert response.data['last_reset_timestamp'] is not None
    assert broadcasts[-1][1] == 'QueueReset'


def test_cashier_cannot_reset_queue(client_for, cashier, queue_area):
    assert client_for(cashier).post(f'/api/areas/{queue_area.id}/queue/reset/', {}, format='json').status_code == 403


def test_update_next_number_rejects_zero(client_for, admin, queue_area):
    url = f'/api/areas/{queue_area.id}/queue/next-sequential-number/'
    assert client_for(admin).put(url, {'next_sequential_number': 0}, format='json').status_code == 400
    response = client_for(admin).put(url, {'next_sequential_number': 15}, format='json')
    assert response.data['next_sequential_number'] == 15


def test_toggle_queue(client_for, admin, area):
    response = client_for(admin).post(f'/api/areas/{area.id}/queue/toggle/', {'enable': True}, format='json')
    assert response.status_code == 200
    assert response.data['is_queue_system_enabled'] is True
    assert response.data['next_sequential_number'] == 1


def test_respeak_needs_a_previous_call(client_for, cashier, queue_area, cashier_station, broadcasts):
    client = client_for(cashier)
    url = f'/api/areas/{queue_area.id}/queue/respeak-last-called/'
    assert client.post(url, {'cashier_station_id': cashier_station.id}, format='json').status_code == 400

    client.post(f'/api/areas/{queue_area.id}/queue/call-next/', {'cashier_station_id': cashier_station.id}, format='json')
    response = client.post(url, {'cashier_station_id': cashier_station.id}, format='json')
    assert response.status_code == 200
    assert response.data['ticket_number'] == 1
    assert [event for _, event, _ in broadcasts].count('QueueNumberCalled') == 2


def test_queue_state_of_disabled_area(client_for, cashier, area):
    response = client_for(cashier).get(f'/api/areas/{area.id}/queue/state/')
    assert response.data == {'area_id': area.id, 'is_queue_system_enabled': False}


def test_respeak_announces_the_station_that_called(client_for, cashier, queue_area, cashier_station, organization, printer, broadcasts):
    from stations.models import CashierStation
    second = CashierStation.objects.create(organization=organization, area=queue_area, name='Cassa 2', receipt_printer=printer)
    client = client_for(cashier)
    client.post(f'/api/areas/{queue_area.id}/queue/call-next/', {'cashier_station_id': cashier_station.id}, format='json')

    response = client.post(f'/api/areas/{queue_area.id}/queue/respeak-last-called/', {'cashier_station_id': second.id}, format='json')
    assert response.data == {'ticket_number': 1, 'cashier_station_id': cashier_station.id, 'cashier_station_name': 'Cassa 1'}
    assert broadcasts[-1][2]['cashier_station_name'] == 'Cassa 1'


def test_rolled_back_call_is_not_broadcast(cashier, queue_area, cashier_station, broadcasts):
    with pytest.raises(RuntimeError):
        with transaction.atomic():
            queue.call_number(cashier, queue_area, cashier_station.id)
            raise RuntimeError('display offline')

    assert broadcasts == []
    assert not AreaQueueState.objects.filter(area=queue_area).exists()

    queue.call_number(cashier, queue_area, cashier_station.id)
    assert [event for _, event, _ in broadcasts] == ['QueueNumberCalled']
