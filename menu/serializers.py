from rest_framework import serializers
from .models import Area, MenuCategory, MenuItem


class AreaSerializer(serializers.ModelSerializer):
    organization_id = serializers.UUIDField(required=False)
    receipt_printer_id = serializers.IntegerField(required=False, allow_null=True)

    class Meta:
        model = Area
        fields = [
            'id', 'name', 'slug', 'organization_id',
            'enable_waiter_confirmation', 'enable_kds', 'enable_completion_confirmation',
            'enable_queue_system', 'receipt_printer_id', 'print_comandas_at_cashier',
            'guest_charge', 'takeaway_charge',
        ]
        read_only_fields = ['id', 'slug']

    def validate_guest_charge(self, value):
        if value < 0:
            raise serializers.ValidationError("Guest charge cannot be negative.")
        return value

    def validate_takeaway_charge(self, value):
        if value < 0:
            raise serializers.ValidationError("Takeaway charge cannot be negative.")
        return value


class PublicAreaSerializer(serializers.ModelSerializer):
    organization_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Area
        fields = [
            'id', 'name', 'slug', 'organization_id', 'enable_queue_system',
            'guest_charge', 'takeaway_charge',
        ]


class MenuCategorySerializer(serializers.ModelSerializer):
    area_id = serializers.IntegerField()

    class Meta:
        model = MenuCategory
        fields = ['id', 'name', 'area_id']
        read_only_fields = ['id']


class MenuItemSerializer(serializers.ModelSerializer):
    menu_category_id = serializers.IntegerField(source='category_id')
    category_name = serializers.CharField(source='category.name', read_only=True)

    class Meta:
        model = MenuItem
        fields = [
            'id', 'name', 'description', 'price', 'menu_category_id', 'category_name',
            'is_note_required', 'note_suggestion', 'scorta',
        ]
        read_only_fields = ['id']

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Price cannot be negative.")
        return value


class StockUpdateSerializer(serializers.Serializer):
    scorta = serializers.IntegerField(min_value=0, allow_null=True)
