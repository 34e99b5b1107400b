from rest_framework import serializers
from .models import AdAreaAssignment, AdMediaItem


# =============== QUEUE ===============

class CallNextSerializer(serializers.Serializer):
    cashier_station_id = serializers.IntegerField()


class CallSpecificSerializer(serializers.Serializer):
    cashier_station_id = serializers.IntegerField()
    ticket_number = serializers.IntegerField(min_value=1)


class ResetQueueSerializer(serializers.Serializer):
    starting_number = serializers.IntegerField(min_value=1, default=1)


class NextNumberSerializer(serializers.Serializer):
    next_sequential_number = serializers.IntegerField(min_value=1)


class ToggleQueueSerializer(serializers.Serializer):
    enable = serializers.BooleanField()


class QueueStateSerializer(serializers.Serializer):
    area_id = serializers.IntegerField()
    is_queue_system_enabled = serializers.BooleanField()
    next_sequential_number = serializers.IntegerField(required=False)
    last_called_number = serializers.IntegerField(required=False, allow_null=True)
    last_called_cashier_station_id = serializers.IntegerField(required=False, allow_null=True)
    last_called_cashier_station_name = serializers.CharField(required=False, allow_null=True)
    last_call_timestamp = serializers.DateTimeField(required=False, allow_null=True)
    last_reset_timestamp = serializers.DateTimeField(required=False, allow_null=True)


# =============== ADS ===============

class AdMediaItemSerializer(serializers.ModelSerializer):
    organization_id = serializers.UUIDField(read_only=True)
    file_url = serializers.SerializerMethodField()

    class Meta:
        model = AdMediaItem
        fields = ['id', 'organization_id', 'name', 'media_type', 'file', 'file_url', 'mime_type', 'uploaded_at']
        read_only_fields = ['id', 'media_type', 'mime_type', 'uploaded_at']
        extra_kwargs = {'file': {'write_only': True}}

    def get_file_url(self, obj):
        request = self.context.get('request')
        url = obj.file.url if obj.file else None
        if url and request is not None:
            return request.build_absolute_uri(url)
        return url

    def validate_file(self, value):
        content_type = getattr(value, 'content_type', '') or ''
        if not (content_type.startswith('image/') or content_type.startswith('video/')):
            raise serializers.ValidationError("Only image and video files are supported.")
        return value

    def create(self, validated_data):
        content_type = validated_data['file'].content_type
        validated_data['mime_type'] = content_type
        validated_data['media_type'] = 'Video' if content_type.startswith('video/') else 'Image'
        return super().create(validated_data)


class AdMediaItemUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = AdMediaItem
        fields = ['name']


class AdAreaAssignmentSerializer(serializers.ModelSerializer):
    ad_media_item_id = serializers.UUIDField()
    area_id = serializers.IntegerField()
    ad_media_item = AdMediaItemSerializer(read_only=True)

    class Meta:
        model = AdAreaAssignment
        fields = ['id', 'ad_media_item_id', 'area_id', 'display_order', 'duration_seconds', 'is_active', 'ad_media_item']
        read_only_fields = ['id']


class PublicAdSerializer(serializers.ModelSerializer):
    """Playlist entry for area displays"""
    name = serializers.CharField(source='ad_media_item.name')
    media_type = serializers.CharField(source='ad_media_item.media_type')
    mime_type = serializers.CharField(source='ad_media_item.mime_type')
    file_url = serializers.SerializerMethodField()
    duration_seconds = serializers.SerializerMethodField()

    class Meta:
        model = AdAreaAssignment
        fields = ['id', 'name', 'media_type', 'mime_type', 'file_url', 'display_order', 'duration_seconds']

    def get_file_url(self, obj):
        request = self.context.get('request')
        url = obj.ad_media_item.file.url
        return request.build_absolute_uri(url) if request is not None else url

    def get_duration_seconds(self, obj):
        if obj.duration_seconds is None and obj.ad_media_item.media_type == 'Image':
            return AdAreaAssignment.DEFAULT_IMAGE_DURATION
        return obj.duration_seconds
