from decimal import Decimal

import django.core.validators
import django.utils.timezone
from django.db import migrations, models

import logistics.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.CharField(default=logistics.models.generate_order_id, editable=False, max_length=64, primary_key=True, serialize=False)),
                ('order_number', models.CharField(blank=True, max_length=50, verbose_name='Número de pedido')),
                ('customer_name', models.CharField(max_length=150, verbose_name='Cliente')),
                ('phone', models.CharField(blank=True, max_length=30, verbose_name='Teléfono')),
                ('address', models.CharField(blank=True, max_length=255, verbose_name='Dirección')),
                ('customer_id', models.CharField(blank=True, max_length=64, verbose_name='ID cliente')),
                ('line_items', models.JSONField(blank=True, default=list, verbose_name='Productos')),
                ('total_value', models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0'))], verbose_name='Valor total (COP)')),
                ('delivery_cost', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0'))], verbose_name='Costo domicilio (COP)')),
                ('payment_method', models.CharField(choices=[('CASH', 'Efectivo'), ('GATEWAY', 'Wompi'), ('TRANSFER', 'Transferencia')], default='CASH', max_length=20, verbose_name='Método de pago')),
                ('payment_status', models.CharField(choices=[('PAID', 'Pagado'), ('PENDING_PAYMENT', 'Pendiente de Pago')], default='PENDING_PAYMENT', max_length=20, verbose_name='Estado de pago')),
                ('transfer_receipt_url', models.CharField(blank=True, max_length=500, verbose_name='Comprobante de transferencia')),
                ('zone', models.CharField(choices=[('AREA_METROPOLITANA', 'Área Metropolitana'), ('SAN_ANTONIO', 'San Antonio y Alrededores'), ('ORIENTE', 'Oriente'), ('BOGOTA', 'Bogotá')], max_length=30, verbose_name='Zona')),
                ('courier', models.CharField(blank=True, choices=[('JAMES', 'James'), ('BELTRAN', 'Beltran'), ('ISMAEL', 'Ismael')], max_length=20, verbose_name='Domiciliario')),
                ('status', models.CharField(choices=[('PENDING', 'Pendiente'), ('PACKED', 'Empacado'), ('IN_TRANSIT', 'En Ruta'), ('DELIVERED', 'Entregado'), ('CANCELLED', 'Cancelado'), ('RETURNED', 'Devolución')], default='PENDING', max_length=20, verbose_name='Estado')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Pedido',
                'verbose_name_plural': 'Pedidos',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', 'created_at'], name='order_status_created_idx'),
                    models.Index(fields=['courier', 'status'], name='order_courier_status_idx'),
                    models.Index(fields=['zone', 'status'], name='order_zone_status_idx'),
                ],
            },
        ),
    ]
