"""
Finance App Views - Courier balances & deposit receipts API
"""

import logging

from rest_framework import viewsets, status, permissions
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response

from core.access import allowed_couriers, can_access_courier, is_known_courier, scope_balances
from core.exceptions import BackofficeError, CourierNotFound, error_response
from core.permissions import IsBackOffice, IsSuperAdmin
from logistics.models import CourierName

from .models import DepositReceipt, LedgerEntry
from .serializers import (
    CourierBalanceSerializer, DepositReceiptSerializer, DepositReviewSerializer,
    DepositUploadSerializer, LedgerEntrySerializer,
)
from .services import LedgerService

logger = logging.getLogger(__name__)


class CourierBalanceViewSet(viewsets.ViewSet):
    """
    ViewSet for courier balances. The courier name is the lookup key.

    - List/Retrieve/Entries: scoped to the couriers the user may see
    - Consign: SuperAdmin and Logística
    - Pay fees: SuperAdmin only
    - Deposit: anyone with access to the courier (the courier itself included)
    """

    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = '[A-Za-z_]+'

    def get_permissions(self):
        if self.action == 'consign':
            return [IsBackOffice()]
        if self.action == 'pay_fees':
            return [IsSuperAdmin()]
        return super().get_permissions()

    def _check_access(self, request, courier):
        """Return an error Response if the courier is unknown or out of scope."""
        if not is_known_courier(courier):
            return error_response(CourierNotFound(f"Domiciliario desconocido: {courier}"))
        if not can_access_courier(request.user, courier):
            return Response(
                {'error': 'No tienes acceso a este domiciliario.'},
                status=status.HTTP_403_FORBIDDEN
            )
        return None

    def list(self, request):
        couriers = allowed_couriers(request.user)
        if couriers is None:
            couriers = CourierName.values
        balances = [
            LedgerService.get_balance(courier)
            for courier in CourierName.values if courier in couriers
        ]
        return Response(CourierBalanceSerializer(balances, many=True).data)

    def retrieve(self, request, pk=None):
        denied = self._check_access(request, pk)
        if denied:
            return denied
        return Response(CourierBalanceSerializer(LedgerService.get_balance(pk)).data)

    @action(detail=True, methods=['post'])
    def consign(self, request, pk=None):
        """Courier handed over their cash: cash_collected back to zero."""
        denied = self._check_access(request, pk)
        if denied:
            return denied
        try:
            balance = LedgerService.consign_cash(pk, actor=request.user)
        except BackofficeError as e:
            return error_response(e)
        return Response(CourierBalanceSerializer(balance).data)

    @action(detail=True, methods=['post'], url_path='pay-fees')
    def pay_fees(self, request, pk=None):
        """Delivery fees paid to the courier: fees_owed back to zero."""
        denied = self._check_access(request, pk)
        if denied:
            return denied
        try:
            balance = LedgerService.pay_fees(pk, actor=request.user)
        except BackofficeError as e:
            return error_response(e)
        return Response(CourierBalanceSerializer(balance).data)

    @action(detail=True, methods=['post'], parser_classes=[MultiPartParser, FormParser])
    def deposit(self, request, pk=None):
        """Upload a deposit receipt for review. The balance is not changed."""
        denied = self._check_access(request, pk)
        if denied:
            return denied
        serializer = DepositUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            deposit = LedgerService.submit_deposit(
                pk, serializer.validated_data['receipt'], actor=request.user
            )
        except BackofficeError as e:
            return error_response(e)
        return Response(DepositReceiptSerializer(deposit).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get'])
    def entries(self, request, pk=None):
        """Ledger history for one courier, newest first."""
        denied = self._check_access(request, pk)
        if denied:
            return denied
        paginator = PageNumberPagination()
        entries = LedgerEntry.objects.filter(courier=pk).select_related('created_by')
        page = paginator.paginate_queryset(entries, request, view=self)
        return paginator.get_paginated_response(LedgerEntrySerializer(page, many=True).data)


class DepositReceiptViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Deposit receipts awaiting verification.

    Review is SuperAdmin only and never consigns cash by itself.
    """

    queryset = DepositReceipt.objects.all()
    serializer_class = DepositReceiptSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ['courier', 'status']

    def get_queryset(self):
        return scope_balances(self.request.user, DepositReceipt.objects.all())

    @action(detail=True, methods=['post'], permission_classes=[IsSuperAdmin])
    def review(self, request, pk=None):
        deposit = self.get_object()
        serializer = DepositReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            deposit = LedgerService.review_deposit(
                deposit, serializer.validated_data['approve'], actor=request.user
            )
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        logger.info(f"[RECEIPTS] Deposit {deposit.id} {deposit.status} by {request.user.username}")
        return Response(DepositReceiptSerializer(deposit).data)
