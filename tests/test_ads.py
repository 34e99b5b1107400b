import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from display.models import AdAreaAssignment, AdMediaItem


pytestmark = pytest.mark.django_db


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    settings.MEDIA_ROOT = tmp_path


@pytest.fixture
def image_ad(organization):
    return AdMediaItem.objects.create(
        organization=organization, name='Sponsor', media_type='Image', mime_type='image/png',
        file=SimpleUploadedFile('sponsor.png', b'png-bytes', content_type='image/png'),
    )


def test_upload_image_ad(client_for, admin, organization):
    upload = SimpleUploadedFile('banner.jpg', b'jpeg-bytes', content_type='image/jpeg')
    response = client_for(admin).post(
        f'/api/admin/organizations/{organization.id}/ads/', {'name': 'Banner', 'file': upload}, format='multipart',
    )
    assert response.status_code == 201
    assert response.data['media_type'] == 'Image'
    assert response.data['mime_type'] == 'image/jpeg'
    assert response.data['file_url'].endswith('banner.jpg')


def test_upload_rejects_documents(client_for, admin, organization):
    upload = SimpleUploadedFile('listino.pdf', b'%PDF', content_type='application/pdf')
    response = client_for(admin).post(
        f'/api/admin/organizations/{organization.id}/ads/', {'name': 'Listino', 'file': upload}, format='multipart',
    )
    assert response.status_code == 400
    assert not AdMediaItem.objects.exists()


def test_upload_to_other_organization_is_forbidden(client_for, admin, other_organization):
    upload = SimpleUploadedFile('banner.jpg', b'jpeg-bytes', content_type='image/jpeg')
    response = client_for(admin).post(
        f'/api/admin/organizations/{other_organization.id}/ads/', {'name': 'Banner', 'file': upload}, format='multipart',
    )
    assert response.status_code == 403


def test_assignment_requires_same_organization(client_for, admin, image_ad, other_area):
    response = client_for(admin).post('/api/admin/ad-assignments/', {
        'ad_media_item_id': str(image_ad.id), 'area_id': other_area.id,
    }, format='json')
    assert response.status_code == 400
    assert not AdAreaAssignment.objects.exists()


def test_public_ads_playlist(client_for, api_client, admin, image_ad, area):
    client = client_for(admin)
    response = client.post('/api/admin/ad-assignments/', {
        'ad_media_item_id': str(image_ad.id), 'area_id': area.id, 'display_order': 2,
    }, format='json')
    assert response.status_code == 201
    inactive = client.post('/api/admin/ad-assignments/', {
        'ad_media_item_id': str(image_ad.id), 'area_id': area.id, 'display_order': 1, 'is_active': False,
    }, format='json')
    assert inactive.status_code == 201

    response = api_client.get(f'/api/public/areas/{area.id}/ads/')
    assert response.status_code == 200
    assert len(response.data) == 1
    assert response.data[0]['duration_seconds'] == AdAreaAssignment.DEFAULT_IMAGE_DURATION
    assert response.data[0]['file_url'].startswith('http://testserver/')


def test_rename_and_delete_ad(client_for, admin, image_ad):
    client = client_for(admin)
    response = client.patch(f'/api/admin/ads/{image_ad.id}/', {'name': 'Sponsor Oro'}, format='json')
    assert response.status_code == 200
    assert response.data['name'] == 'Sponsor Oro'
    assert client.delete(f'/api/admin/ads/{image_ad.id}/').status_code == 204
    assert not AdMediaItem.objects.exists()


def test_other_admin_cannot_delete_ad(client_for, other_admin, image_ad):
    assert client_for(other_admin).delete(f'/api/admin/ads/{image_ad.id}/').status_code == 403
