import logging

from rest_framework import generics, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView
from django.contrib.auth.models import Group
from django.db import transaction
from django.utils import timezone
from drf_spectacular.utils import extend_schema, OpenApiExample

from .exceptions import AccessDenied, InvalidOperation, ResourceNotFound
from .models import Organization, User
from .permissions import (
    IsOrganizationAdmin, IsSuperAdmin, ensure_organization_access,
    get_user_roles, is_super_admin,
)
from .serializers import (
    AssignRolesSerializer, LoginSerializer, OrganizationSerializer, RegisterSerializer,
    RoleSerializer, UserSerializer, UserUpdateSerializer,
)

logger = logging.getLogger(__name__)


def issue_tokens(user):
    """Refresh/access pair with the tenant and role claims the clients read"""
    refresh = RefreshToken.for_user(user)
    refresh['email'] = user.email
    refresh['organization_id'] = str(user.organization_id) if user.organization_id else None
    refresh['roles'] = sorted(get_user_roles(user))
    return refresh


# =============== AUTHENTICATION VIEWS ===============

class LoginView(TokenObtainPairView):
    """
    JWT login endpoint.

    The tokens carry the user's organization and roles so that clients can
    route staff to the cashier, waiter or KDS screens without another call.
    """
    serializer_class = LoginSerializer
    permission_classes = [AllowAny]

    @extend_schema(
        summary="User Login with JWT Token",
        request=LoginSerializer,
        responses={
            200: {
                'type': 'object',
                'properties': {
                    'refresh': {'type': 'string', 'description': 'JWT refresh token'},
                    'access': {'type': 'string', 'description': 'JWT access token'},
                    'user': {'type': 'object', 'description': 'User information'},
                }
            },
            400: {'description': 'Invalid credentials or inactive account'},
        },
        examples=[
            OpenApiExample(
                'Cashier Login',
                value={"email": "cassa@prolocosagra.it", "password": "SecurePassword123!"}
            )
        ]
    )
    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data['user']

        user.last_login = timezone.now()
        user.save(update_fields=['last_login'])

        refresh = issue_tokens(user)
        logger.info(f"User {user.email} logged in")
        return Response({
            'refresh': str(refresh),
            'access': str(refresh.access_token),
            'user': UserSerializer(user).data,
        })


@extend_schema(
    summary="Register a new user",
    request=RegisterSerializer,
    responses={201: UserSerializer}
)
@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    serializer = RegisterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = serializer.save()
    logger.info(f"Registered user {user.email}")
    return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


def get_managed_user(request, user_id):
    """User ``user_id`` if the caller may manage it, 404 otherwise"""
    queryset = User.objects.all()
    if not is_super_admin(request.user):
        queryset = queryset.filter(organization_id=request.user.organization_id)
    try:
        return queryset.get(pk=user_id)
    except (User.DoesNotExist, ValueError):
        raise ResourceNotFound(f"User with ID {user_id} not found or access denied.")


@extend_schema(
    summary="Replace the roles of a user",
    request=AssignRolesSerializer,
    responses={200: UserSerializer}
)
@api_view(['POST'])
@permission_classes([IsOrganizationAdmin])
def assign_roles(request):
    serializer = AssignRolesSerializer(data=request.data, context={'request': request})
    serializer.is_valid(raise_exception=True)

    user = get_managed_user(request, serializer.validated_data['user_id'])
    with transaction.atomic():
        user.groups.set(Group.objects.filter(name__in=serializer.validated_data['roles']))

    logger.info(f"Roles of {user.email} set to {serializer.validated_data['roles']} by {request.user.email}")
    return Response(UserSerializer(user).data)


class UserListView(generics.ListAPIView):
    """List users, SuperAdmins see every organization"""
    serializer_class = UserSerializer
    permission_classes = [IsOrganizationAdmin]

    def get_queryset(self):
        queryset = User.objects.prefetch_related('groups')
        if is_super_admin(self.request.user):
            return queryset
        if self.request.user.organization_id is None:
            raise AccessDenied('User is not associated with any organization.')
        return queryset.filter(organization_id=self.request.user.organization_id)


class UserDetailView(generics.RetrieveUpdateDestroyAPIView):
    """
    get: user details
    put/patch: update names, email and roles
    delete: remove a user (not yourself)
    """
    permission_classes = [IsOrganizationAdmin]
    lookup_url_kwarg = 'user_id'

    def get_object(self):
        return get_managed_user(self.request, self.kwargs['user_id'])

    def get_serializer_class(self):
        if self.request.method in ['PUT', 'PATCH']:
            return UserUpdateSerializer
        return UserSerializer

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        user = self.get_object()
        serializer = UserUpdateSerializer(user, data=request.data, partial=partial, context={'request': request})
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(UserSerializer(user).data)

    def perform_destroy(self, instance):
        if instance.pk == self.request.user.pk:
            raise InvalidOperation('Users cannot delete their own account.')
        logger.info(f"User {instance.email} deleted by {self.request.user.email}")
        instance.delete()


class RoleListCreateView(generics.ListCreateAPIView):
    """
    get: list roles (admins)
    post: create a role (SuperAdmin only)
    """
    queryset = Group.objects.order_by('name')
    serializer_class = RoleSerializer
    pagination_class = None

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsSuperAdmin()]
        return [IsOrganizationAdmin()]


# =============== ORGANIZATIONS ===============

class OrganizationListCreateView(generics.ListCreateAPIView):
    """
    get: organizations visible to the user
    post: create an organization (SuperAdmin only)
    """
    serializer_class = OrganizationSerializer

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsSuperAdmin()]
        return [IsAuthenticated()]

    def get_queryset(self):
        if is_super_admin(self.request.user):
            return Organization.objects.all()
        return Organization.objects.filter(pk=self.request.user.organization_id)

    def perform_create(self, serializer):
        organization = serializer.save()
        logger.info(f"Organization {organization.name} created with slug {organization.slug}")


class OrganizationDetailView(generics.RetrieveUpdateDestroyAPIView):
    """
    get: organization details (members of the organization)
    put/patch/delete: SuperAdmin only
    """
    queryset = Organization.objects.all()
    serializer_class = OrganizationSerializer
    lookup_url_kwarg = 'organization_id'

    def get_permissions(self):
        if self.request.method in ['PUT', 'PATCH', 'DELETE']:
            return [IsSuperAdmin()]
        return [IsAuthenticated()]

    def get_object(self):
        organization = super().get_object()
        ensure_organization_access(self.request.user, organization.pk)
        return organization

    def perform_update(self, serializer):
        previous_name = serializer.instance.name
        organization = serializer.save()
        if organization.name != previous_name:
            organization.slug = ''
            organization.save()
