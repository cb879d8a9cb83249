"""
Alerts App Views - Alert feed API
"""

import logging

from rest_framework import mixins, viewsets, permissions
from rest_framework.decorators import action
from rest_framework.response import Response
from django.utils import timezone

from .models import Alert
from .serializers import AlertSerializer

logger = logging.getLogger(__name__)


class AlertViewSet(mixins.ListModelMixin,
                   mixins.RetrieveModelMixin,
                   viewsets.GenericViewSet):
    """
    ViewSet for the alert feed.

    Every role sees the alerts in its scope; superseded alerts are hidden
    unless ?include_superseded=true.
    """

    serializer_class = AlertSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ['kind', 'priority', 'is_read', 'is_resolved']

    def get_queryset(self):
        qs = Alert.objects.visible_to(self.request.user)
        if self.request.query_params.get('include_superseded') != 'true':
            qs = qs.filter(superseded=False)
        return qs

    @action(detail=True, methods=['post'])
    def read(self, request, pk=None):
        alert = self.get_object()
        if not alert.is_read:
            alert.is_read = True
            alert.save(update_fields=['is_read'])
        return Response(self.get_serializer(alert).data)

    @action(detail=False, methods=['post'], url_path='read-all')
    def read_all(self, request):
        updated = self.get_queryset().filter(is_read=False).update(is_read=True)
        return Response({'updated': updated})

    @action(detail=True, methods=['post'])
    def resolve(self, request, pk=None):
        """Mark an alert as handled. Conditions still present are raised again by the next sweep."""
        alert = self.get_object()
        if not alert.is_resolved:
            alert.is_resolved = True
            alert.resolved_at = timezone.now()
            alert.save(update_fields=['is_resolved', 'resolved_at'])
            logger.info(f"[ALERTS] {alert.kind} {alert.related_id} resolved by {request.user.username}")
        return Response(self.get_serializer(alert).data)

    @action(detail=False, methods=['post'])
    def clear(self, request):
        """Delete read alerts, keeping open HIGH ones and open standing conditions."""
        deleted, _ = Alert.objects.filter(
            pk__in=self.get_queryset().clearable().values('pk')
        ).delete()
        logger.info(f"[ALERTS] {request.user.username} cleared {deleted} alert(s)")
        return Response({'deleted': deleted})
