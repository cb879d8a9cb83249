"""
Logistics App Serializers - Orders
"""

from rest_framework import serializers

from core.access import allowed_zones

from .models import Order, OrderStatus, PaymentMethod, Zone


class OrderSerializer(serializers.ModelSerializer):
    """Full serializer for Order model."""

    created_at_ms = serializers.ReadOnlyField()
    zone_display = serializers.CharField(source='get_zone_display', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    payment_method_display = serializers.CharField(source='get_payment_method_display', read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'customer_name', 'phone', 'address', 'customer_id',
            'line_items', 'total_value', 'delivery_cost',
            'payment_method', 'payment_method_display', 'payment_status', 'transfer_receipt_url',
            'zone', 'zone_display', 'courier', 'status', 'status_display',
            'created_at', 'created_at_ms', 'updated_at',
        ]
        read_only_fields = [
            'id', 'delivery_cost', 'courier', 'status', 'payment_status',
            'transfer_receipt_url', 'created_at', 'updated_at',
        ]


class LineItemSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    quantity = serializers.IntegerField(min_value=1, default=1)


class OrderCreateSerializer(serializers.ModelSerializer):
    """Manual order entry. Courier and delivery cost come from the zone."""

    line_items = LineItemSerializer(many=True, required=False)
    payment_method = serializers.ChoiceField(
        choices=[PaymentMethod.CASH, PaymentMethod.GATEWAY, PaymentMethod.TRANSFER],
        default=PaymentMethod.CASH,
    )

    class Meta:
        model = Order
        fields = [
            'order_number', 'customer_name', 'phone', 'address', 'customer_id',
            'line_items', 'total_value', 'payment_method', 'payment_status', 'zone',
        ]

    def create(self, validated_data):
        items = validated_data.pop('line_items', [])
        return Order.objects.create(line_items=[dict(item) for item in items], **validated_data)

    def validate_zone(self, value):
        zones = allowed_zones(self.context['request'].user)
        if zones is not None and value not in zones:
            raise serializers.ValidationError("No tienes acceso a esta zona.")
        return value


class OrderStatusUpdateSerializer(serializers.Serializer):
    """Serializer for a single status change."""

    status = serializers.ChoiceField(choices=OrderStatus.choices)


class BulkStatusSerializer(serializers.Serializer):
    order_ids = serializers.ListField(
        child=serializers.CharField(max_length=64),
        allow_empty=False,
        max_length=500,
    )
    status = serializers.ChoiceField(choices=OrderStatus.choices)


class DeliverySerializer(serializers.Serializer):
    """
    Delivery confirmation.

    A transfer needs a receipt, either as a stored URL or as an uploaded
    file in `receipt` (multipart).
    """

    method = serializers.ChoiceField(choices=[PaymentMethod.CASH, PaymentMethod.TRANSFER])
    receipt_url = serializers.CharField(max_length=500, required=False, allow_blank=True)
    receipt = serializers.FileField(required=False)

    def validate(self, data):
        if data['method'] == PaymentMethod.TRANSFER and not (data.get('receipt_url') or data.get('receipt')):
            raise serializers.ValidationError(
                {'receipt': "Una transferencia requiere el comprobante de pago."}
            )
        return data


class ZoneSerializer(serializers.Serializer):
    """Fixed zone table entry."""

    zone = serializers.ChoiceField(choices=Zone.choices)
    label = serializers.CharField()
    courier = serializers.CharField()
    delivery_cost = serializers.DecimalField(max_digits=12, decimal_places=2)
