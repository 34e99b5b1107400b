from rest_framework import serializers
from django.contrib.auth import authenticate
from django.contrib.auth.models import Group
from django.contrib.auth.password_validation import validate_password
from django.db import transaction
from .models import User, Organization
from .exceptions import AccessDenied
from .permissions import Roles, is_super_admin


class OrganizationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Organization
        fields = ['id', 'name', 'slug', 'subscription_status', 'created_at']
        read_only_fields = ['id', 'slug', 'created_at']


class UserSerializer(serializers.ModelSerializer):
    full_name = serializers.SerializerMethodField(read_only=True)
    roles = serializers.SerializerMethodField(read_only=True)
    organization_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'first_name', 'last_name', 'full_name',
            'organization_id', 'status', 'roles', 'date_joined'
        ]
        read_only_fields = ['id', 'status', 'date_joined']

    def get_full_name(self, obj):
        return f"{obj.first_name} {obj.last_name}".strip()

    def get_roles(self, obj):
        return obj.role_names


class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    confirm_password = serializers.CharField(write_only=True, required=False)
    organization_id = serializers.PrimaryKeyRelatedField(
        source='organization', queryset=Organization.objects.all(), required=False, allow_null=True
    )

    class Meta:
        model = User
        fields = ['id', 'email', 'first_name', 'last_name', 'password', 'confirm_password', 'organization_id']
        read_only_fields = ['id']

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return value

    def validate(self, attrs):
        if 'confirm_password' in attrs and attrs['password'] != attrs['confirm_password']:
            raise serializers.ValidationError("Passwords don't match")
        return attrs

    def create(self, validated_data):
        validated_data.pop('confirm_password', None)
        password = validated_data.pop('password')
        return User.objects.create_user(password=password, **validated_data)


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField()

    def validate(self, attrs):
        user = authenticate(username=attrs['email'], password=attrs['password'])
        if not user:
            raise serializers.ValidationError('Invalid email or password')

        if user.status != 'Active':
            raise serializers.ValidationError('User account is not active')

        attrs['user'] = user
        return attrs


class UserUpdateSerializer(serializers.ModelSerializer):
    roles = serializers.ListField(child=serializers.CharField(), required=False)

    class Meta:
        model = User
        fields = ['email', 'first_name', 'last_name', 'roles']

    def validate_email(self, value):
        queryset = User.objects.filter(email__iexact=value)
        if self.instance:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return value

    def validate_roles(self, value):
        return validate_role_names(value, self.context.get('request'))

    @transaction.atomic
    def update(self, instance, validated_data):
        roles = validated_data.pop('roles', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()
        if roles is not None:
            instance.groups.set(Group.objects.filter(name__in=roles))
        return instance


class AssignRolesSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    roles = serializers.ListField(child=serializers.CharField(), allow_empty=True)

    def validate_roles(self, value):
        return validate_role_names(value, self.context.get('request'))


class RoleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Group
        fields = ['id', 'name']

    def validate_name(self, value):
        if Group.objects.filter(name__iexact=value).exists():
            raise serializers.ValidationError("Role already exists.")
        return value


def validate_role_names(roles, request=None):
    """Check every role exists and that only SuperAdmins hand out SuperAdmin"""
    roles = list(dict.fromkeys(roles))
    known = set(Group.objects.filter(name__in=roles).values_list('name', flat=True))
    unknown = [role for role in roles if role not in known]
    if unknown:
        raise serializers.ValidationError(f"Unknown roles: {', '.join(unknown)}")

    if request is not None and Roles.SUPER_ADMIN in roles:
        if not is_super_admin(request.user):
            raise AccessDenied("Only a SuperAdmin can assign the SuperAdmin role.")
    return roles
