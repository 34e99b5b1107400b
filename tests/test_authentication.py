import pytest

from authentication.models import User
from authentication.permissions import Roles


pytestmark = pytest.mark.django_db


def test_register_and_login_returns_tokens_with_roles(api_client, organization, roles):
    response = api_client.post('/api/accounts/register/', {
        'email': 'nuovo@prolocosagra.it',
        'first_name': 'Lucia',
        'last_name': 'Bianchi',
        'password': 'Una-Password-Sicura-99',
        'confirm_password': 'Una-Password-Sicura-99',
        'organization_id': str(organization.id),
    }, format='json')
    assert response.status_code == 201
    assert response.data['organization_id'] == str(organization.id)

    user = User.objects.get(email='nuovo@prolocosagra.it')
    user.groups.add(roles[Roles.CASHIER])

    response = api_client.post('/api/accounts/login/', {
        'email': 'nuovo@prolocosagra.it', 'password': 'Una-Password-Sicura-99',
    }, format='json')
    assert response.status_code == 200
    assert response.data['access']
    assert response.data['refresh']
    assert response.data['user']['roles'] == [Roles.CASHIER]


def test_register_rejects_duplicate_email(api_client, admin):
    response = api_client.post('/api/accounts/register/', {
        'email': admin.email,
        'first_name': 'Copia',
        'last_name': 'Utente',
        'password': 'Una-Password-Sicura-99',
    }, format='json')
    assert response.status_code == 400
    assert response.data['error'] is True
    assert 'email' in response.data['details']


def test_login_with_wrong_password_is_rejected(api_client, cashier):
    response = api_client.post('/api/accounts/login/', {'email': cashier.email, 'password': 'sbagliata'}, format='json')
    assert response.status_code == 400


def test_unauthenticated_request_gets_error_envelope(api_client):
    response = api_client.get('/api/accounts/')
    assert response.status_code == 401
    assert response.data['error'] is True
    assert response.data['status_code'] == 401


def test_admin_lists_only_own_organization_users(client_for, admin, cashier, other_admin):
    response = client_for(admin).get('/api/accounts/')
    assert response.status_code == 200
    emails = {user['email'] for user in response.data['results']}
    assert cashier.email in emails
    assert other_admin.email not in emails


def test_cashier_cannot_list_users(client_for, cashier):
    assert client_for(cashier).get('/api/accounts/').status_code == 403


def test_admin_assigns_roles(client_for, admin, cashier):
    response = client_for(admin).post('/api/accounts/assign-roles/', {
        'user_id': str(cashier.id), 'roles': [Roles.CASHIER, Roles.WAITER],
    }, format='json')
    assert response.status_code == 200
    assert response.data['roles'] == [Roles.CASHIER, Roles.WAITER]


def test_only_super_admin_can_grant_super_admin(client_for, admin, cashier):
    response = client_for(admin).post('/api/accounts/assign-roles/', {
        'user_id': str(cashier.id), 'roles': [Roles.SUPER_ADMIN],
    }, format='json')
    assert response.status_code == 403


def test_assign_roles_to_user_of_another_organization_is_not_found(client_for, admin, other_admin):
    response = client_for(admin).post('/api/accounts/assign-roles/', {
        'user_id': str(other_admin.id), 'roles': [Roles.CASHIER],
    }, format='json')
    assert response.status_code == 404


def test_admin_cannot_delete_own_account(client_for, admin):
    response = client_for(admin).delete(f'/api/accounts/{admin.id}/')
    assert response.status_code == 400


def test_super_admin_creates_organization_with_unique_slug(client_for, super_admin, organization):
    response = client_for(super_admin).post('/api/organizations/', {'name': organization.name}, format='json')
    assert response.status_code == 201
    assert response.data['slug'] == f"{organization.slug}-1"


def test_admin_cannot_create_organization(client_for, admin):
    response = client_for(admin).post('/api/organizations/', {'name': 'Altra Sagra'}, format='json')
    assert response.status_code == 403


def test_member_cannot_read_other_organization(client_for, admin, other_organization):
    response = client_for(admin).get(f'/api/organizations/{other_organization.id}/')
    assert response.status_code == 403
