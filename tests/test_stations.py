import pytest

from stations.models import CashierStation, KdsStation, PrintJob, Printer, PrinterCategoryAssignment


pytestmark = pytest.mark.django_db


def kds_url(organization, area, *parts):
    suffix = ''.join(f"{part}/" for part in parts)
    return f'/api/organizations/{organization.id}/areas/{area.id}/kds-stations/{suffix}'


def test_kds_station_crud(client_for, admin, organization, area):
    client = client_for(admin)
    response = client.post(kds_url(organization, area), {'name': ' Griglia '}, format='json')
    assert response.status_code == 201
    assert response.data['name'] == 'Griglia'
    station_id = response.data['id']

    response = client.get(kds_url(organization, area))
    assert [station['name'] for station in response.data] == ['Griglia']

    response = client.patch(kds_url(organization, area, station_id), {'name': 'Friggitoria'}, format='json')
    assert response.data['name'] == 'Friggitoria'
    assert client.delete(kds_url(organization, area, station_id)).status_code == 204
    assert not KdsStation.objects.exists()


def test_area_admin_reads_but_cannot_create_kds_stations(client_for, area_admin, organization, area):
    client = client_for(area_admin)
    assert client.get(kds_url(organization, area)).status_code == 200
    assert client.post(kds_url(organization, area), {'name': 'Griglia'}, format='json').status_code == 403


def test_kds_stations_of_other_organization_are_forbidden(client_for, other_admin, organization, area):
    assert client_for(other_admin).get(kds_url(organization, area)).status_code == 403


def test_kds_category_assignment(client_for, admin, organization, area, category):
    station = KdsStation.objects.create(organization=organization, area=area, name='Cucina')
    client = client_for(admin)
    url = kds_url(organization, area, station.id, 'categories', category.id)

    assert client.post(url).status_code == 201
    assert client.post(url).status_code == 409

    response = client.get(kds_url(organization, area, station.id, 'categories'))
    assert [item['name'] for item in response.data] == ['Primi']

    assert client.delete(url).status_code == 204
    assert client.delete(url).status_code == 404


def test_kds_category_of_another_area_is_not_found(client_for, admin, organization, area, other_area):
    from menu.models import MenuCategory
    foreign = MenuCategory.objects.create(area=other_area, name='Cocktail')
    station = KdsStation.objects.create(organization=organization, area=area, name='Cucina')
    response = client_for(admin).post(kds_url(organization, area, station.id, 'categories', foreign.id))
    assert response.status_code == 404


def test_create_cashier_station(client_for, admin, organization, area, printer):
    response = client_for(admin).post(f'/api/cashier-stations/organization/{organization.id}/', {
        'name': 'Cassa 2', 'area_id': area.id, 'receipt_printer_id': printer.id,
        'print_comandas_at_this_station': True,
    }, format='json')
    assert response.status_code == 201
    assert response.data['area_name'] == 'Stand Gastronomico'
    assert response.data['receipt_printer_name'] == 'Cassa 1'


def test_cashier_station_needs_printer_of_same_organization(client_for, admin, organization, other_organization, area):
    foreign_printer = Printer.objects.create(organization=other_organization, name='Altrui', connection_string='10.0.0.9:9100')
    response = client_for(admin).post(f'/api/cashier-stations/organization/{organization.id}/', {
        'name': 'Cassa 2', 'area_id': area.id, 'receipt_printer_id': foreign_printer.id,
    }, format='json')
    assert response.status_code == 400
    assert not CashierStation.objects.filter(name='Cassa 2').exists()


def test_cashier_reads_area_stations(client_for, cashier, area, cashier_station):
    response = client_for(cashier).get(f'/api/cashier-stations/area/{area.id}/')
    assert response.status_code == 200
    assert [station['id'] for station in response.data] == [cashier_station.id]


def test_printer_of_cashier_station_cannot_be_deleted(client_for, admin, printer, cashier_station):
    response = client_for(admin).delete(f'/api/printers/{printer.id}/')
    assert response.status_code == 400
    assert Printer.objects.filter(pk=printer.id).exists()


def test_register_printer_for_own_organization(client_for, admin, organization):
    response = client_for(admin).post('/api/printers/', {
        'name': 'Cucina', 'connection_string': ' 192.168.1.60:9100 ',
    }, format='json')
    assert response.status_code == 201
    assert response.data['connection_string'] == '192.168.1.60:9100'
    assert str(response.data['organization_id']) == str(organization.id)


def test_printer_assignments_replace_categories(client_for, admin, printer, category, drinks, other_area):
    from menu.models import MenuCategory
    client = client_for(admin)
    url = f'/api/printers/{printer.id}/assignments/'

    response = client.post(url, {'category_ids': [category.id, drinks.id]}, format='json')
    assert response.data == sorted([category.id, drinks.id])
    response = client.post(url, {'category_ids': [drinks.id]}, format='json')
    assert client.get(url).data == [drinks.id]

    foreign = MenuCategory.objects.create(area=other_area, name='Cocktail')
    assert client.post(url, {'category_ids': [foreign.id]}, format='json').status_code == 400
    assert PrinterCategoryAssignment.objects.filter(printer=printer).count() == 1


def test_test_print_queues_a_job(client_for, admin, printer):
    response = client_for(admin).post(f'/api/printers/{printer.id}/test-print/')
    assert response.status_code == 201
    assert response.data['job_type'] == 'TestPrint'
    assert response.data['status'] == 'Pending'
    assert 'Test di stampa' in response.data['content']


def test_print_job_status_and_retry(client_for, admin, organization, printer):
    job = PrintJob.objects.create(organization=organization, printer=printer, job_type='TestPrint', content='prova')
    client = client_for(admin)

    assert client.post(f'/api/print-jobs/{job.id}/retry/').status_code == 400

    response = client.post(f'/api/print-jobs/{job.id}/status/', {'status': 'Failed', 'error_message': 'Carta esaurita'}, format='json')
    assert response.data['status'] == 'Failed'
    assert response.data['retry_count'] == 1
    assert response.data['error_message'] == 'Carta esaurita'

    response = client.post(f'/api/print-jobs/{job.id}/retry/')
    assert response.status_code == 200
    assert response.data['status'] == 'Pending'
    assert response.data['error_message'] is None

    response = client.post(f'/api/print-jobs/{job.id}/status/', {'status': 'Succeeded'}, format='json')
    assert response.data['completed_at'] is not None


def test_print_job_list_is_scoped(client_for, admin, organization, other_organization, printer):
    foreign_printer = Printer.objects.create(organization=other_organization, name='Altrui', connection_string='10.0.0.9:9100')
    PrintJob.objects.create(organization=organization, printer=printer, job_type='TestPrint', content='nostro')
    PrintJob.objects.create(organization=other_organization, printer=foreign_printer, job_type='TestPrint', content='altrui')

    response = client_for(admin).get('/api/print-jobs/')
    assert response.status_code == 200
    assert [job['content'] for job in response.data['results']] == ['nostro']


def test_other_organization_cannot_touch_print_jobs(client_for, other_admin, organization, printer):
    job = PrintJob.objects.create(organization=organization, printer=printer, job_type='TestPrint', content='prova')
    assert client_for(other_admin).post(f'/api/print-jobs/{job.id}/retry/').status_code == 403
