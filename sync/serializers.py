from rest_framework import serializers
from .models import SyncConfiguration


class SyncConfigurationSerializer(serializers.ModelSerializer):
    organization_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = SyncConfiguration
        fields = ['id', 'organization_id', 'platform_base_url', 'api_key', 'is_enabled']
        read_only_fields = ['id']

    def validate_api_key(self, value):
        if not value.strip():
            raise serializers.ValidationError("API key cannot be blank.")
        return value.strip()


class SyncResultSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    error_message = serializers.CharField(allow_null=True)
    error_details = serializers.CharField(allow_null=True)
    status_code = serializers.IntegerField(allow_null=True)
