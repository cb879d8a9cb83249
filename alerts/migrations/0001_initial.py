import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Alert',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('kind', models.CharField(choices=[('STALE_ORDER', 'Pedido pendiente sin movimiento'), ('COURIER_CASH', 'Efectivo por consignar'), ('PAYMENT_DAY', 'Día de pago'), ('ORDER_CANCELLED', 'Pedido cancelado'), ('ORDER_DELIVERED', 'Pedido entregado'), ('ORDERS_IMPORTED', 'Pedidos importados')], max_length=20, verbose_name='Tipo')),
                ('related_id', models.CharField(blank=True, help_text='Pedido, domiciliario o fecha a la que se refiere la alerta', max_length=64)),
                ('tier', models.PositiveSmallIntegerField(default=0, help_text='Nivel de escalamiento (horas para pedidos pendientes)')),
                ('priority', models.CharField(choices=[('LOW', 'Baja'), ('HIGH', 'Alta')], default='LOW', max_length=10, verbose_name='Prioridad')),
                ('audience', models.CharField(choices=[('ALL', 'Todos'), ('SUPERADMIN', 'Solo SuperAdmin')], default='ALL', max_length=20, verbose_name='Audiencia')),
                ('title', models.CharField(max_length=200)),
                ('message', models.TextField(blank=True)),
                ('zone', models.CharField(blank=True, choices=[('AREA_METROPOLITANA', 'Área Metropolitana'), ('SAN_ANTONIO', 'San Antonio y Alrededores'), ('ORIENTE', 'Oriente'), ('BOGOTA', 'Bogotá')], max_length=30)),
                ('courier', models.CharField(blank=True, choices=[('JAMES', 'James'), ('BELTRAN', 'Beltran'), ('ISMAEL', 'Ismael')], max_length=20)),
                ('is_read', models.BooleanField(default=False)),
                ('is_resolved', models.BooleanField(default=False)),
                ('superseded', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('resolved_at', models.DateTimeField(blank=True, null=True)),
            ],
            options={
                'verbose_name': 'Alerta',
                'verbose_name_plural': 'Alertas',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['kind', 'related_id'], name='alert_kind_related_idx'),
                    models.Index(fields=['is_resolved', 'superseded'], name='alert_open_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('is_resolved', False), ('superseded', False)), fields=('kind', 'related_id', 'tier'), name='unique_open_alert'),
                ],
            },
        ),
    ]
