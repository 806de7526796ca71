# Generated Django migration file

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


PROVIDER_CHOICES = [
    ('samsara', 'Samsara'),
    ('keeptruckin', 'KeepTruckin / Motive'),
    ('geotab', 'Geotab'),
    ('mobile_app', 'Mobile App'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ELDDevice',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('device_name', models.CharField(blank=True, max_length=200)),
                ('provider', models.CharField(choices=PROVIDER_CHOICES, max_length=20)),
                ('provider_device_id', models.CharField(help_text='Device or vehicle identifier used by the provider', max_length=100)),
                ('serial_number', models.CharField(max_length=100, unique=True)),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive')], default='active', max_length=10)),
                ('firmware_version', models.CharField(blank=True, max_length=50)),
                ('device_info', models.JSONField(blank=True, default=dict)),
                ('last_sync_at', models.DateTimeField(blank=True, null=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='eld_devices', to='core.company')),
                ('truck', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='eld_devices', to='core.vehicle')),
            ],
            options={
                'db_table': 'eld_device',
                'ordering': ['-created_at'],
                'constraints': [models.UniqueConstraint(fields=('provider', 'provider_device_id'), name='uniq_eld_device_provider_id')],
            },
        ),
        migrations.CreateModel(
            name='DriverMapping',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('provider', models.CharField(choices=PROVIDER_CHOICES, max_length=20)),
                ('provider_driver_id', models.CharField(max_length=100)),
                ('driver_name', models.CharField(blank=True, max_length=100)),
                ('driver_email', models.EmailField(blank=True, max_length=254)),
                ('is_active', models.BooleanField(default=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='eld_driver_mappings', to='core.company')),
                ('driver', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='eld_mappings', to='core.driver')),
                ('eld_device', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='driver_mappings', to='eld.elddevice')),
            ],
            options={
                'db_table': 'eld_driver_mapping',
                'ordering': ['-created_at'],
                'constraints': [models.UniqueConstraint(condition=models.Q(('is_active', True)), fields=('eld_device', 'provider', 'provider_driver_id'), name='uniq_active_eld_driver_mapping')],
            },
        ),
        migrations.CreateModel(
            name='DutyStatusLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('provider_driver_id', models.CharField(blank=True, help_text='Driver id as sent by the provider, kept for triage of unmapped logs', max_length=100)),
                ('external_id', models.CharField(blank=True, help_text='Provider or client record id; corrections upsert on it', max_length=100, null=True)),
                ('log_type', models.CharField(choices=[('driving', 'Driving'), ('on_duty', 'On Duty (Not Driving)'), ('off_duty', 'Off Duty'), ('sleeper_berth', 'Sleeper Berth')], max_length=20)),
                ('log_date', models.DateField()),
                ('start_time', models.DateTimeField()),
                ('end_time', models.DateTimeField(blank=True, null=True)),
                ('duration_minutes', models.PositiveIntegerField(blank=True, null=True)),
                ('odometer_start', models.FloatField(blank=True, null=True)),
                ('odometer_end', models.FloatField(blank=True, null=True)),
                ('location_start', models.JSONField(blank=True, null=True)),
                ('location_end', models.JSONField(blank=True, null=True)),
                ('location_address', models.CharField(blank=True, max_length=500)),
                ('certified', models.BooleanField(default=False)),
                ('raw_data', models.JSONField(blank=True, null=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='duty_status_logs', to='core.company')),
                ('driver', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='duty_status_logs', to='core.driver')),
                ('eld_device', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='duty_status_logs', to='eld.elddevice')),
                ('truck', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='duty_status_logs', to='core.vehicle')),
            ],
            options={
                'db_table': 'eld_duty_status_log',
                'ordering': ['start_time'],
                'indexes': [
                    models.Index(fields=['driver', 'start_time'], name='eld_log_driver_start_idx'),
                    models.Index(fields=['company', 'log_date'], name='eld_log_company_date_idx'),
                ],
                'constraints': [models.UniqueConstraint(fields=('eld_device', 'external_id'), name='uniq_eld_log_external_id')],
            },
        ),
        migrations.CreateModel(
            name='LocationPing',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('external_id', models.CharField(blank=True, max_length=100, null=True)),
                ('latitude', models.FloatField()),
                ('longitude', models.FloatField()),
                ('speed', models.FloatField(blank=True, help_text='MPH', null=True)),
                ('heading', models.FloatField(blank=True, null=True)),
                ('odometer', models.FloatField(blank=True, null=True)),
                ('address', models.CharField(blank=True, max_length=500)),
                ('engine_status', models.CharField(default='unknown', max_length=20)),
                ('timestamp', models.DateTimeField()),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='location_pings', to='core.company')),
                ('driver', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='location_pings', to='core.driver')),
                ('eld_device', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='location_pings', to='eld.elddevice')),
                ('truck', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='location_pings', to='core.vehicle')),
            ],
            options={
                'db_table': 'eld_location_ping',
                'ordering': ['-timestamp'],
                'indexes': [
                    models.Index(fields=['eld_device', '-timestamp'], name='eld_ping_device_ts_idx'),
                    models.Index(fields=['truck', '-timestamp'], name='eld_ping_truck_ts_idx'),
                ],
                'constraints': [models.UniqueConstraint(fields=('eld_device', 'external_id'), name='uniq_eld_location_external_id')],
            },
        ),
        migrations.CreateModel(
            name='ComplianceEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('external_id', models.CharField(blank=True, max_length=100, null=True)),
                ('dedupe_key', models.CharField(blank=True, help_text='Identity of a calculator-derived violation', max_length=200, null=True, unique=True)),
                ('event_type', models.CharField(choices=[('hos_violation', 'HOS Violation'), ('speeding', 'Speeding'), ('hard_brake', 'Hard Brake'), ('device_malfunction', 'Device Malfunction'), ('other', 'Other')], max_length=30)),
                ('severity', models.CharField(choices=[('info', 'Info'), ('warning', 'Warning'), ('critical', 'Critical')], default='warning', max_length=10)),
                ('source', models.CharField(choices=[('provider', 'Provider webhook'), ('mobile', 'Mobile app'), ('calculator', 'HOS calculator')], default='provider', max_length=20)),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('event_time', models.DateTimeField()),
                ('location', models.JSONField(blank=True, null=True)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('resolved', models.BooleanField(default=False)),
                ('resolved_at', models.DateTimeField(blank=True, null=True)),
                ('resolution_note', models.TextField(blank=True)),
                ('notified_at', models.DateTimeField(blank=True, null=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='compliance_events', to='core.company')),
                ('driver', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='compliance_events', to='core.driver')),
                ('eld_device', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='compliance_events', to='eld.elddevice')),
                ('resolved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='resolved_compliance_events', to=settings.AUTH_USER_MODEL)),
                ('truck', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='compliance_events', to='core.vehicle')),
            ],
            options={
                'db_table': 'eld_compliance_event',
                'ordering': ['-event_time'],
                'indexes': [
                    models.Index(fields=['company', 'resolved', '-event_time'], name='eld_event_company_open_idx'),
                    models.Index(fields=['driver', '-event_time'], name='eld_event_driver_time_idx'),
                ],
                'constraints': [models.UniqueConstraint(fields=('eld_device', 'external_id'), name='uniq_eld_event_external_id')],
            },
        ),
    ]
