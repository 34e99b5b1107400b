import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from authentication.models import Organization
from authentication.permissions import IsOrganizationAdmin, ensure_organization_access
from .models import SyncConfiguration
from .serializers import SyncConfigurationSerializer, SyncResultSerializer
from . import services

logger = logging.getLogger(__name__)


def get_organization(user, organization_id):
    ensure_organization_access(user, organization_id, 'User is not authorized to manage sync for this organization.')
    return get_object_or_404(Organization, pk=organization_id)


@extend_schema(
    methods=['GET'], responses={200: SyncConfigurationSerializer}
)
@extend_schema(
    methods=['PUT'], request=SyncConfigurationSerializer, responses={200: SyncConfigurationSerializer}
)
@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsOrganizationAdmin])
def sync_configuration(request, organization_id):
    """
    get: Sync configuration of the organization
    put: Create or replace the sync configuration
    delete: Remove the sync configuration
    """
    organization = get_organization(request.user, organization_id)
    config = SyncConfiguration.objects.filter(organization=organization).first()

    if request.method == 'GET':
        if config is None:
            return Response({'error': 'Sync configuration not found'}, status=status.HTTP_404_NOT_FOUND)
        return Response(SyncConfigurationSerializer(config).data)

    if request.method == 'DELETE':
        if config is None:
            return Response({'error': 'Sync configuration not found'}, status=status.HTTP_404_NOT_FOUND)
        config.delete()
        logger.info(f"Sync configuration of organization {organization.id} deleted by {request.user.email}")
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = SyncConfigurationSerializer(config, data=request.data)
    serializer.is_valid(raise_exception=True)
    config = serializer.save(organization=organization)
    logger.info(f"Sync configuration of organization {organization.id} saved (enabled: {config.is_enabled})")
    return Response(SyncConfigurationSerializer(config).data)


@extend_schema(request=None, responses={200: SyncResultSerializer, 400: SyncResultSerializer})
@api_view(['POST'])
@permission_classes([IsOrganizationAdmin])
def sync_menu(request, organization_id):
    organization = get_organization(request.user, organization_id)
    result = services.sync_menu(organization.id)
    response_status = status.HTTP_200_OK if result['success'] else status.HTTP_400_BAD_REQUEST
    return Response(SyncResultSerializer(result).data, status=response_status)
