"""
Core App Views - User Management API
"""

import logging

from rest_framework import viewsets, status, permissions
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from django.contrib.auth import get_user_model

from .permissions import IsSuperAdmin
from .serializers import PasswordChangeSerializer, UserCreateSerializer, UserSerializer

User = get_user_model()
logger = logging.getLogger(__name__)


class UserViewSet(viewsets.ModelViewSet):
    """
    ViewSet for User model.

    - CRUD: SuperAdmin only
    - me / change_password: any authenticated user, on themselves
    """

    queryset = User.objects.all()
    serializer_class = UserSerializer
    permission_classes = [IsSuperAdmin]

    def get_permissions(self):
        if self.action in ['me', 'change_password']:
            return [permissions.IsAuthenticated()]
        return super().get_permissions()

    def get_serializer_class(self):
        if self.action == 'create':
            return UserCreateSerializer
        return UserSerializer

    def perform_create(self, serializer):
        user = serializer.save()
        logger.info(f"[USERS] {self.request.user.username} created {user.username} ({user.role})")

    def perform_destroy(self, instance):
        if instance.pk == self.request.user.pk:
            raise ValidationError({'error': 'No puedes eliminar tu propio usuario.'})
        logger.info(f"[USERS] {self.request.user.username} deleted {instance.username}")
        instance.delete()

    @action(detail=False, methods=['get'])
    def me(self, request):
        """Get current user profile."""
        serializer = UserSerializer(request.user)
        return Response(serializer.data)

    @action(detail=False, methods=['post'], url_path='change-password')
    def change_password(self, request):
        serializer = PasswordChangeSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        request.user.set_password(serializer.validated_data['new_password'])
        request.user.save(update_fields=['password'])
        return Response({'message': 'Contraseña actualizada.'}, status=status.HTTP_200_OK)
