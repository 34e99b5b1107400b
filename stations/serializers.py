from rest_framework import serializers
from .models import CashierStation, KdsStation, PrintJob, Printer


class PrinterSerializer(serializers.ModelSerializer):
    organization_id = serializers.UUIDField(required=False)

    class Meta:
        model = Printer
        fields = [
            'id', 'organization_id', 'name', 'type', 'connection_string',
            'is_enabled', 'print_mode', 'paper_size', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_connection_string(self, value):
        if not value.strip():
            raise serializers.ValidationError("Connection string is required.")
        return value.strip()


class PrinterAssignmentSerializer(serializers.Serializer):
    category_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=True)


class PrintJobSerializer(serializers.ModelSerializer):
    printer_name = serializers.CharField(source='printer.name', read_only=True)
    order_display_number = serializers.CharField(source='order.display_order_number', read_only=True, default=None)

    class Meta:
        model = PrintJob
        fields = [
            'id', 'organization_id', 'area_id', 'order_id', 'order_display_number',
            'printer_id', 'printer_name', 'job_type', 'status', 'content',
            'created_at', 'last_attempt_at', 'completed_at', 'retry_count', 'error_message',
        ]
        read_only_fields = fields


class PrintJobStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['Processing', 'Succeeded', 'Failed'])
    error_message = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)


class KdsStationSerializer(serializers.ModelSerializer):
    organization_id = serializers.UUIDField(read_only=True)
    area_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = KdsStation
        fields = ['id', 'name', 'organization_id', 'area_id']
        read_only_fields = ['id']

    def validate_name(self, value):
        if not value.strip():
            raise serializers.ValidationError("Name is required.")
        return value.strip()


class CashierStationSerializer(serializers.ModelSerializer):
    organization_id = serializers.UUIDField(read_only=True)
    area_id = serializers.IntegerField()
    area_name = serializers.CharField(source='area.name', read_only=True)
    receipt_printer_id = serializers.IntegerField()
    receipt_printer_name = serializers.CharField(source='receipt_printer.name', read_only=True)

    class Meta:
        model = CashierStation
        fields = [
            'id', 'organization_id', 'area_id', 'area_name', 'name',
            'receipt_printer_id', 'receipt_printer_name',
            'print_comandas_at_this_station', 'is_enabled',
        ]
        read_only_fields = ['id']


class PublicCashierStationSerializer(serializers.ModelSerializer):
    class Meta:
        model = CashierStation
        fields = ['id', 'name', 'area_id']
