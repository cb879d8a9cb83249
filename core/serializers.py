"""
Core App Serializers - User Management
"""

from rest_framework import serializers
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password

from logistics.models import Zone
from .models import UserRole

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Serializer for User model."""

    zones = serializers.ListField(
        child=serializers.ChoiceField(choices=Zone.choices),
        required=False,
    )

    class Meta:
        model = User
        fields = [
            'id', 'username', 'email', 'name', 'role',
            'zones', 'courier_name', 'is_active', 'date_joined'
        ]
        read_only_fields = ['id', 'date_joined']

    def validate(self, attrs):
        role = attrs.get('role', getattr(self.instance, 'role', UserRole.LOGISTICS))
        zones = attrs.get('zones', getattr(self.instance, 'zones', []))
        courier_name = attrs.get('courier_name', getattr(self.instance, 'courier_name', ''))

        # Switching role drops the scoping of the previous one
        if role != UserRole.LOGISTICS:
            if 'zones' in attrs and attrs['zones']:
                raise serializers.ValidationError({'zones': "Solo el rol Logística tiene zonas asignadas."})
            attrs['zones'] = []
        elif not zones:
            raise serializers.ValidationError({'zones': "Un usuario de Logística necesita al menos una zona."})

        if role == UserRole.COURIER:
            if not courier_name:
                raise serializers.ValidationError({'courier_name': "Un domiciliario debe tener un domiciliario asignado."})
        else:
            if 'courier_name' in attrs and attrs['courier_name']:
                raise serializers.ValidationError({'courier_name': "Solo los domiciliarios tienen domiciliario asignado."})
            attrs['courier_name'] = ''

        return attrs


class UserCreateSerializer(UserSerializer):
    """Serializer for user creation by a SuperAdmin."""

    password = serializers.CharField(
        write_only=True,
        required=True,
        validators=[validate_password]
    )

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ['password']

    def create(self, validated_data):
        password = validated_data.pop('password')
        return User.objects.create_user(password=password, **validated_data)


class PasswordChangeSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, validators=[validate_password])

    def validate_current_password(self, value):
        if not self.context['request'].user.check_password(value):
            raise serializers.ValidationError("La contraseña actual no es correcta.")
        return value
