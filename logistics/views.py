"""
Logistics App Views - Orders API
"""

import logging

from rest_framework import mixins, viewsets, status, permissions
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response

from core.access import scope_orders
from core.exceptions import BackofficeError, OrderNotFound, error_response
from core.models import UserRole
from core.permissions import IsBackOffice
from finance.services import upload_receipt

from .filters import OrderFilter
from .models import DELIVERY_COSTS, ZONE_TO_COURIER, Order, Zone
from .serializers import (
    BulkStatusSerializer, DeliverySerializer, OrderCreateSerializer,
    OrderSerializer, OrderStatusUpdateSerializer, ZoneSerializer,
)
from .services.state_machine import (
    ABSORBING_STATUSES, bulk_set_status, build_confirmation, courier_can_transition,
    deliver_order, set_status,
)

logger = logging.getLogger(__name__)


class OrderViewSet(mixins.ListModelMixin,
                   mixins.RetrieveModelMixin,
                   mixins.CreateModelMixin,
                   viewsets.GenericViewSet):
    """
    ViewSet for Orders.

    - List/Retrieve: every role, scoped (zones for Logística, own courier for Domiciliario)
    - Create / bulk status: SuperAdmin and Logística
    - Status: back office freely, couriers only PACKED -> IN_TRANSIT
    - Deliver: any role with access to the order
    Orders are never deleted.
    """

    queryset = Order.objects.all()
    serializer_class = OrderSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_class = OrderFilter
    search_fields = ['id', 'order_number', 'customer_name', 'phone', 'address']
    ordering_fields = ['created_at', 'total_value', 'status']
    ordering = ['-created_at']

    def get_permissions(self):
        if self.action in ['create', 'bulk_status']:
            return [IsBackOffice()]
        return super().get_permissions()

    def get_serializer_class(self):
        if self.action == 'create':
            return OrderCreateSerializer
        return OrderSerializer

    def get_queryset(self):
        return scope_orders(self.request.user, Order.objects.all())

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = serializer.save()
        logger.info(f"[ORDERS] {request.user.username} created {order.id} in {order.zone}")
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], url_path='status')
    def change_status(self, request, pk=None):
        """
        Change an order's status. Disallowed transitions leave it unchanged.

        Couriers may only put their packed orders in transit; cancelling and
        returning are back-office decisions.
        """
        order = self.get_object()
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        target = serializer.validated_data['status']

        if request.user.role == UserRole.COURIER and not courier_can_transition(order.status, target):
            logger.warning(
                f"[ORDERS] Courier {request.user.username} refused {order.id}: {order.status} -> {target}"
            )
            return Response(
                {
                    'error': f"Un domiciliario no puede pasar un pedido de {order.status} a {target}.",
                    'code': 'FORBIDDEN_TRANSITION',
                    'retryable': False,
                },
                status=status.HTTP_403_FORBIDDEN,
            )

        try:
            result = set_status(order.pk, target, actor=request.user)
        except BackofficeError as e:
            return error_response(e)

        return Response({
            'changed': result.changed,
            'order': OrderSerializer(result.order).data,
        })

    @action(
        detail=True,
        methods=['post'],
        parser_classes=[JSONParser, MultiPartParser, FormParser],
    )
    def deliver(self, request, pk=None):
        """Confirm delivery with the payment collected (cash or transfer + receipt)."""
        order = self.get_object()
        serializer = DeliverySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        # Nothing to deliver: do not store a receipt nobody will reference
        if order.status in ABSORBING_STATUSES:
            logger.info(f"[ORDERS] Ignored delivery of {order.id}: order is {order.status}")
            return Response({'changed': False, 'order': OrderSerializer(order).data})

        try:
            receipt_url = data.get('receipt_url', '')
            if data.get('receipt'):
                receipt_url = upload_receipt(data['receipt'])
            confirmation = build_confirmation(data['method'], receipt_url)
            result = deliver_order(order.pk, confirmation, actor=request.user)
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except BackofficeError as e:
            return error_response(e)

        return Response({
            'changed': result.changed,
            'order': OrderSerializer(result.order).data,
        })

    @action(detail=False, methods=['post'], url_path='bulk-status')
    def bulk_status(self, request):
        """Change the status of many orders; each one succeeds or fails on its own."""
        serializer = BulkStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order_ids = list(dict.fromkeys(serializer.validated_data['order_ids']))

        # Orders outside the user's scope are reported like missing ones
        visible = set(
            self.get_queryset().filter(pk__in=order_ids).values_list('pk', flat=True)
        )
        result = bulk_set_status(
            [order_id for order_id in order_ids if order_id in visible],
            serializer.validated_data['status'],
            actor=request.user,
        )
        for order_id in order_ids:
            if order_id not in visible:
                result.failed.append((order_id, OrderNotFound.code, f"El pedido {order_id} no existe."))

        return Response(result.as_dict())

    @action(detail=False, methods=['get'])
    def zones(self, request):
        """Fixed zone table: courier and delivery cost per zone."""
        rows = [
            {
                'zone': zone.value,
                'label': zone.label,
                'courier': ZONE_TO_COURIER[zone].value,
                'delivery_cost': DELIVERY_COSTS[zone],
            }
            for zone in Zone
        ]
        if request.user.role == UserRole.LOGISTICS:
            rows = [row for row in rows if row['zone'] in (request.user.zones or [])]
        return Response(ZoneSerializer(rows, many=True).data)
