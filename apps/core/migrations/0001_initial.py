# Generated Django migration file

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Company',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('name', models.CharField(max_length=200)),
                ('dot_number', models.CharField(max_length=20, unique=True)),
                ('carrier_name', models.CharField(blank=True, help_text='Official carrier name as registered with FMCSA', max_length=200)),
                ('hos_cycle', models.CharField(blank=True, choices=[('US_60_7', '60 hours / 7 days'), ('US_70_8', '70 hours / 8 days')], help_text='Multi-day duty cycle; blank uses the deployment default', max_length=10)),
                ('split_sleeper_enabled', models.BooleanField(default=False, help_text='Drivers may use the sleeper-berth split provision')),
                ('is_active', models.BooleanField(default=True)),
            ],
            options={
                'db_table': 'core_company',
                'verbose_name_plural': 'companies',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Vehicle',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('vehicle_number', models.CharField(help_text='Fleet vehicle number or identifier', max_length=50)),
                ('vin', models.CharField(blank=True, max_length=17)),
                ('license_plate', models.CharField(blank=True, max_length=20)),
                ('is_active', models.BooleanField(default=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='vehicles', to='core.company')),
            ],
            options={
                'db_table': 'core_vehicle',
                'ordering': ['vehicle_number'],
            },
        ),
        migrations.CreateModel(
            name='Driver',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('name', models.CharField(max_length=100)),
                ('license_number', models.CharField(blank=True, max_length=50)),
                ('license_state', models.CharField(blank=True, max_length=2)),
                ('phone', models.CharField(blank=True, max_length=20)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('hos_cycle', models.CharField(blank=True, choices=[('US_60_7', '60 hours / 7 days'), ('US_70_8', '70 hours / 8 days')], help_text='Overrides the company cycle when set', max_length=10)),
                ('is_active', models.BooleanField(default=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='drivers', to='core.company')),
            ],
            options={
                'db_table': 'core_driver',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['company', 'is_active'], name='core_driver_company_active_idx')],
            },
        ),
        migrations.CreateModel(
            name='CompanyMembership',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('role', models.CharField(choices=[('manager', 'Manager'), ('dispatcher', 'Dispatcher'), ('driver', 'Driver')], default='dispatcher', max_length=20)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='memberships', to='core.company')),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='membership', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'core_company_membership',
            },
        ),
    ]
