"""
CORE App - Custom User Model for DOMICILIOS

Handles: Users (SuperAdmin, Logística, Domiciliario)
"""

import uuid
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.core.exceptions import ValidationError
from django.db import models

from logistics.models import CourierName, Zone


class UserRole(models.TextChoices):
    """User role enumeration."""
    SUPERADMIN = 'SUPERADMIN', 'Superadmin'
    LOGISTICS = 'LOGISTICS', 'Logística'
    COURIER = 'COURIER', 'Domiciliario'


class UserManager(BaseUserManager):
    """Custom user manager for username-based authentication."""

    def create_user(self, username, password=None, **extra_fields):
        if not username:
            raise ValueError('El nombre de usuario es obligatorio')

        email = extra_fields.pop('email', '')
        user = self.model(username=username, email=self.normalize_email(email), **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(self, username, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', UserRole.SUPERADMIN)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(username, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Back-office user.

    Key Business Logic:
    - LOGISTICS users are scoped to a subset of zones
    - COURIER users are bound to exactly one courier identity
    - SUPERADMIN sees and mutates everything
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    username = models.CharField(max_length=50, unique=True, verbose_name="Usuario")
    email = models.EmailField(blank=True, verbose_name="Correo")

    # Profile
    name = models.CharField(max_length=150, blank=True, verbose_name="Nombre")
    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.LOGISTICS,
        verbose_name="Rol"
    )

    # Scoping
    zones = models.JSONField(
        default=list,
        blank=True,
        verbose_name="Zonas asignadas",
        help_text="Solo para el rol Logística"
    )
    courier_name = models.CharField(
        max_length=20,
        choices=CourierName.choices,
        blank=True,
        verbose_name="Domiciliario",
        help_text="Solo para el rol Domiciliario"
    )

    # Django Auth Fields
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    date_joined = models.DateTimeField(auto_now_add=True)

    objects = UserManager()

    USERNAME_FIELD = 'username'
    REQUIRED_FIELDS = []

    class Meta:
        verbose_name = "Usuario"
        verbose_name_plural = "Usuarios"
        ordering = ['name']

    def __str__(self):
        return f"{self.name or self.username} ({self.role})"

    def clean(self):
        super().clean()
        invalid = [z for z in self.zones or [] if z not in Zone.values]
        if invalid:
            raise ValidationError({'zones': f"Zonas desconocidas: {', '.join(invalid)}"})

        if self.role == UserRole.COURIER and not self.courier_name:
            raise ValidationError({'courier_name': "Un domiciliario debe tener un domiciliario asignado."})
        if self.role != UserRole.COURIER and self.courier_name:
            raise ValidationError({'courier_name': "Solo los domiciliarios tienen domiciliario asignado."})
        if self.role != UserRole.LOGISTICS and self.zones:
            raise ValidationError({'zones': "Solo el rol Logística tiene zonas asignadas."})

    @property
    def is_superadmin(self) -> bool:
        return self.role == UserRole.SUPERADMIN

    @property
    def is_logistics(self) -> bool:
        return self.role == UserRole.LOGISTICS

    @property
    def is_courier(self) -> bool:
        return self.role == UserRole.COURIER
