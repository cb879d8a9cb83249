import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


COURIER_CHOICES = [('JAMES', 'James'), ('BELTRAN', 'Beltran'), ('ISMAEL', 'Ismael')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('logistics', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='CourierBalance',
            fields=[
                ('courier', models.CharField(choices=COURIER_CHOICES, max_length=20, primary_key=True, serialize=False, verbose_name='Domiciliario')),
                ('cash_collected', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14, verbose_name='Efectivo por consignar (COP)')),
                ('fees_owed', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14, verbose_name='Domicilios por pagar (COP)')),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Saldo de domiciliario',
                'verbose_name_plural': 'Saldos de domiciliarios',
                'ordering': ['courier'],
            },
        ),
        migrations.CreateModel(
            name='LedgerEntry',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('courier', models.CharField(choices=COURIER_CHOICES, max_length=20, verbose_name='Domiciliario')),
                ('entry_type', models.CharField(choices=[('SETTLE', 'Liquidación de entrega'), ('REVERSE', 'Reverso por devolución'), ('CONSIGN', 'Consignación de efectivo'), ('PAY_FEES', 'Pago de domicilios')], max_length=20, verbose_name='Tipo')),
                ('cash_delta', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('fees_delta', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('cash_after', models.DecimalField(decimal_places=2, max_digits=14)),
                ('fees_after', models.DecimalField(decimal_places=2, max_digits=14)),
                ('description', models.CharField(blank=True, max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='ledger_entries', to=settings.AUTH_USER_MODEL, verbose_name='Registrado por')),
                ('order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='logistics.order', verbose_name='Pedido')),
            ],
            options={
                'verbose_name': 'Movimiento de saldo',
                'verbose_name_plural': 'Movimientos de saldo',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['courier', 'created_at'], name='ledger_courier_created_idx'),
                    models.Index(fields=['entry_type'], name='ledger_entry_type_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='DepositReceipt',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('courier', models.CharField(choices=COURIER_CHOICES, max_length=20, verbose_name='Domiciliario')),
                ('receipt', models.FileField(upload_to='receipts/%Y/%m/', verbose_name='Comprobante')),
                ('status', models.CharField(choices=[('PENDING_REVIEW', 'Pendiente de verificación'), ('VERIFIED', 'Verificado'), ('REJECTED', 'Rechazado')], default='PENDING_REVIEW', max_length=20, verbose_name='Estado')),
                ('reviewed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('reviewed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reviewed_deposits', to=settings.AUTH_USER_MODEL, verbose_name='Revisado por')),
                ('submitted_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='submitted_deposits', to=settings.AUTH_USER_MODEL, verbose_name='Enviado por')),
            ],
            options={
                'verbose_name': 'Comprobante de consignación',
                'verbose_name_plural': 'Comprobantes de consignación',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['courier', 'status'], name='deposit_courier_status_idx'),
                ],
            },
        ),
    ]
