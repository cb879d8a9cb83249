"""
Alerts App Serializers
"""

from rest_framework import serializers
from .models import Alert


class AlertSerializer(serializers.ModelSerializer):
    """Serializer for Alert model."""

    is_open = serializers.ReadOnlyField()

    class Meta:
        model = Alert
        fields = [
            'id', 'kind', 'related_id', 'tier', 'priority', 'audience',
            'title', 'message', 'zone', 'courier',
            'is_read', 'is_resolved', 'superseded', 'is_open',
            'created_at', 'resolved_at'
        ]
        read_only_fields = [
            'id', 'kind', 'related_id', 'tier', 'priority', 'audience',
            'title', 'message', 'zone', 'courier',
            'is_read', 'is_resolved', 'superseded', 'created_at', 'resolved_at'
        ]
