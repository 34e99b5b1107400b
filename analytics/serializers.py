from rest_framework import serializers


class KpiSerializer(serializers.Serializer):
    day_id = serializers.IntegerField(allow_null=True)
    day_date = serializers.DateField(allow_null=True)
    today_total_sales = serializers.DecimalField(max_digits=12, decimal_places=2)
    today_order_count = serializers.IntegerField()
    average_order_value = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_coperti = serializers.IntegerField()
    most_popular_category = serializers.CharField(allow_null=True)


class SalesTrendSerializer(serializers.Serializer):
    date = serializers.DateField()
    day_id = serializers.IntegerField(allow_null=True)
    sales = serializers.DecimalField(max_digits=12, decimal_places=2)
    order_count = serializers.IntegerField()


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.CharField()
    count = serializers.IntegerField()
    percentage = serializers.DecimalField(max_digits=5, decimal_places=2)


class TopMenuItemSerializer(serializers.Serializer):
    item_name = serializers.CharField()
    category_name = serializers.CharField()
    quantity = serializers.IntegerField()
    revenue = serializers.DecimalField(max_digits=12, decimal_places=2)


class HourlyOrdersSerializer(serializers.Serializer):
    hour = serializers.IntegerField()
    order_count = serializers.IntegerField()
    revenue = serializers.DecimalField(max_digits=12, decimal_places=2)


class PaymentMethodSerializer(serializers.Serializer):
    payment_method = serializers.CharField()
    count = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    percentage = serializers.DecimalField(max_digits=5, decimal_places=2)


class AverageValueTrendSerializer(serializers.Serializer):
    date = serializers.DateField()
    day_id = serializers.IntegerField(allow_null=True)
    average_value = serializers.DecimalField(max_digits=12, decimal_places=2)
    order_count = serializers.IntegerField()


class StatusTimelineSerializer(serializers.Serializer):
    order_id = serializers.CharField()
    display_order_number = serializers.CharField(allow_null=True)
    status = serializers.CharField()
    timestamp = serializers.DateTimeField()
