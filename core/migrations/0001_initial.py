import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('username', models.CharField(max_length=50, unique=True, verbose_name='Usuario')),
                ('email', models.EmailField(blank=True, max_length=254, verbose_name='Correo')),
                ('name', models.CharField(blank=True, max_length=150, verbose_name='Nombre')),
                ('role', models.CharField(choices=[('SUPERADMIN', 'Superadmin'), ('LOGISTICS', 'Logística'), ('COURIER', 'Domiciliario')], default='LOGISTICS', max_length=20, verbose_name='Rol')),
                ('zones', models.JSONField(blank=True, default=list, help_text='Solo para el rol Logística', verbose_name='Zonas asignadas')),
                ('courier_name', models.CharField(blank=True, choices=[('JAMES', 'James'), ('BELTRAN', 'Beltran'), ('ISMAEL', 'Ismael')], help_text='Solo para el rol Domiciliario', max_length=20, verbose_name='Domiciliario')),
                ('is_active', models.BooleanField(default=True)),
                ('is_staff', models.BooleanField(default=False)),
                ('date_joined', models.DateTimeField(auto_now_add=True)),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'Usuario',
                'verbose_name_plural': 'Usuarios',
                'ordering': ['name'],
            },
        ),
    ]
