from rest_framework import serializers
from .models import Day, Order, OrderItem


class OrderItemCreateSerializer(serializers.Serializer):
    menu_item_id = serializers.IntegerField()
    quantity = serializers.IntegerField()
    note = serializers.CharField(max_length=200, required=False, allow_blank=True, allow_null=True)


class OrderCreateSerializer(serializers.Serializer):
    area_id = serializers.IntegerField()
    customer_name = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    table_number = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)
    number_of_guests = serializers.IntegerField(min_value=0, default=1)
    is_takeaway = serializers.BooleanField(default=False)
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES)
    amount_paid = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    cashier_station_id = serializers.IntegerField(required=False, allow_null=True)
    items = OrderItemCreateSerializer(many=True)


class PreOrderCreateSerializer(serializers.Serializer):
    organization_id = serializers.UUIDField()
    area_id = serializers.IntegerField()
    customer_name = serializers.CharField(max_length=100)
    customer_email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    number_of_guests = serializers.IntegerField(min_value=0, default=1)
    is_takeaway = serializers.BooleanField(default=False)
    items = OrderItemCreateSerializer(many=True)

    def validate_customer_name(self, value):
        if not value.strip():
            raise serializers.ValidationError("Customer name is required.")
        return value


class ConfirmPaymentSerializer(serializers.Serializer):
    customer_name = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES)
    amount_paid = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    number_of_guests = serializers.IntegerField(min_value=0, required=False)
    is_takeaway = serializers.BooleanField(required=False)
    cashier_station_id = serializers.IntegerField(required=False, allow_null=True)
    items = OrderItemCreateSerializer(many=True)


class ConfirmPreparationSerializer(serializers.Serializer):
    table_number = serializers.CharField(max_length=20, allow_blank=True)


class KdsStatusUpdateSerializer(serializers.Serializer):
    kds_status = serializers.ChoiceField(choices=OrderItem.KDS_STATUS_CHOICES)


class ReprintSerializer(serializers.Serializer):
    printer_id = serializers.IntegerField(required=False, allow_null=True)
    include_receipt = serializers.BooleanField(default=True)
    include_comandas = serializers.BooleanField(default=True)


class OrderItemReadSerializer(serializers.ModelSerializer):
    menu_item_id = serializers.IntegerField(read_only=True)
    menu_item_name = serializers.CharField(source='menu_item.name', read_only=True)
    menu_category_id = serializers.IntegerField(source='menu_item.category_id', read_only=True)
    line_total = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            'id', 'menu_item_id', 'menu_item_name', 'menu_category_id',
            'quantity', 'unit_price', 'line_total', 'note', 'kds_status',
        ]


class OrderReadSerializer(serializers.ModelSerializer):
    items = OrderItemReadSerializer(many=True, read_only=True)
    organization_id = serializers.UUIDField(read_only=True)
    area_id = serializers.IntegerField(read_only=True)
    area_name = serializers.CharField(source='area.name', read_only=True)
    day_id = serializers.IntegerField(read_only=True)
    cashier_id = serializers.UUIDField(read_only=True)
    cashier_name = serializers.SerializerMethodField()
    waiter_id = serializers.UUIDField(read_only=True)
    waiter_name = serializers.SerializerMethodField()
    cashier_station_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'display_order_number', 'preorder_platform_id', 'organization_id',
            'area_id', 'area_name', 'day_id', 'cashier_id', 'cashier_name', 'waiter_id', 'waiter_name',
            'cashier_station_id', 'customer_name', 'customer_email', 'table_number',
            'number_of_guests', 'is_takeaway', 'status', 'order_datetime',
            'total_amount', 'payment_method', 'amount_paid', 'items',
        ]

    def get_cashier_name(self, obj):
        return obj.cashier.get_full_name() if obj.cashier else None

    def get_waiter_name(self, obj):
        return obj.waiter.get_full_name() if obj.waiter else None


class OrderWithQrSerializer(OrderReadSerializer):
    """Order as returned on creation, with its pickup QR code"""
    qr_code_base64 = serializers.SerializerMethodField()

    class Meta(OrderReadSerializer.Meta):
        fields = OrderReadSerializer.Meta.fields + ['qr_code_base64']

    def get_qr_code_base64(self, obj):
        from .services import order_qr_code_base64
        return order_qr_code_base64(obj)


class PublicOrderSerializer(serializers.ModelSerializer):
    """What pickup displays may show about an order"""
    class Meta:
        model = Order
        fields = ['id', 'display_order_number', 'customer_name', 'table_number', 'status', 'order_datetime']


class KdsOrderSerializer(serializers.Serializer):
    """Order as seen by one KDS station, limited to the station's items"""
    order_id = serializers.CharField(source='order.id')
    display_order_number = serializers.CharField(source='order.display_order_number')
    customer_name = serializers.CharField(source='order.customer_name')
    table_number = serializers.CharField(source='order.table_number')
    is_takeaway = serializers.BooleanField(source='order.is_takeaway')
    order_datetime = serializers.DateTimeField(source='order.order_datetime')
    items = OrderItemReadSerializer(many=True)


class DaySerializer(serializers.ModelSerializer):
    organization_id = serializers.UUIDField(read_only=True)
    opened_by_name = serializers.SerializerMethodField()
    closed_by_name = serializers.SerializerMethodField()

    class Meta:
        model = Day
        fields = [
            'id', 'organization_id', 'start_time', 'end_time', 'status',
            'opened_by_name', 'closed_by_name', 'total_sales',
        ]
        read_only_fields = fields

    def get_opened_by_name(self, obj):
        return obj.opened_by.get_full_name() if obj.opened_by else None

    def get_closed_by_name(self, obj):
        return obj.closed_by.get_full_name() if obj.closed_by else None
