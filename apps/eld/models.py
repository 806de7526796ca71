"""
ELD (Electronic Logging Device) models: devices, identity mappings and the
canonical duty-status, location and compliance-event records.
"""
from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone
from apps.core.models import BaseModel, Company, Driver, Vehicle


PROVIDER_SAMSARA = 'samsara'
PROVIDER_KEEPTRUCKIN = 'keeptruckin'
PROVIDER_GEOTAB = 'geotab'
PROVIDER_MOBILE = 'mobile_app'

PROVIDER_CHOICES = [
    (PROVIDER_SAMSARA, 'Samsara'),
    (PROVIDER_KEEPTRUCKIN, 'KeepTruckin / Motive'),
    (PROVIDER_GEOTAB, 'Geotab'),
    (PROVIDER_MOBILE, 'Mobile App'),
]

HARDWARE_PROVIDERS = (PROVIDER_SAMSARA, PROVIDER_KEEPTRUCKIN, PROVIDER_GEOTAB)


class ELDDevice(BaseModel):
    """
    One physical ELD unit or one mobile-app installation acting as an ELD.
    Devices are deactivated, never deleted.
    """
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
    ]

    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name='eld_devices'
    )
    device_name = models.CharField(max_length=200, blank=True)
    provider = models.CharField(max_length=20, choices=PROVIDER_CHOICES)
    provider_device_id = models.CharField(
        max_length=100,
        help_text="Device or vehicle identifier used by the provider"
    )
    serial_number = models.CharField(max_length=100, unique=True)
    truck = models.ForeignKey(
        Vehicle,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='eld_devices'
    )
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='active')
    firmware_version = models.CharField(max_length=50, blank=True)
    device_info = models.JSONField(default=dict, blank=True)
    last_sync_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'eld_device'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['provider', 'provider_device_id'],
                name='uniq_eld_device_provider_id',
            ),
        ]

    def __str__(self):
        return f"{self.get_provider_display()} {self.provider_device_id}"

    @property
    def is_active(self):
        return self.status == 'active'

    def touch_sync(self, when=None):
        """Record a successful ingestion heartbeat."""
        self.last_sync_at = when or timezone.now()
        ELDDevice.objects.filter(pk=self.pk).update(last_sync_at=self.last_sync_at)


class DriverMapping(BaseModel):
    """
    Resolves a provider's driver identifier on one device to an internal driver.
    Mappings are soft-deleted so the audit trail survives.
    """
    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name='eld_driver_mappings'
    )
    eld_device = models.ForeignKey(
        ELDDevice,
        on_delete=models.CASCADE,
        related_name='driver_mappings'
    )
    provider = models.CharField(max_length=20, choices=PROVIDER_CHOICES)
    provider_driver_id = models.CharField(max_length=100)
    driver = models.ForeignKey(
        Driver,
        on_delete=models.CASCADE,
        related_name='eld_mappings'
    )
    driver_name = models.CharField(max_length=100, blank=True)
    driver_email = models.EmailField(blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'eld_driver_mapping'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['eld_device', 'provider', 'provider_driver_id'],
                condition=Q(is_active=True),
                name='uniq_active_eld_driver_mapping',
            ),
        ]

    def __str__(self):
        return f"{self.provider}:{self.provider_driver_id} -> {self.driver_id}"


class DutyStatusLog(BaseModel):
    """
    One continuous interval in a single duty status (a log segment).
    """
    LOG_DRIVING = 'driving'
    LOG_ON_DUTY = 'on_duty'
    LOG_OFF_DUTY = 'off_duty'
    LOG_SLEEPER = 'sleeper_berth'

    LOG_TYPE_CHOICES = [
        (LOG_DRIVING, 'Driving'),
        (LOG_ON_DUTY, 'On Duty (Not Driving)'),
        (LOG_OFF_DUTY, 'Off Duty'),
        (LOG_SLEEPER, 'Sleeper Berth'),
    ]

    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name='duty_status_logs'
    )
    driver = models.ForeignKey(
        Driver,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='duty_status_logs'
    )
    provider_driver_id = models.CharField(
        max_length=100,
        blank=True,
        help_text="Driver id as sent by the provider, kept for triage of unmapped logs"
    )
    truck = models.ForeignKey(
        Vehicle,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='duty_status_logs'
    )
    eld_device = models.ForeignKey(
        ELDDevice,
        on_delete=models.CASCADE,
        related_name='duty_status_logs'
    )
    external_id = models.CharField(
        max_length=100,
        null=True,
        blank=True,
        help_text="Provider or client record id; corrections upsert on it"
    )

    log_type = models.CharField(max_length=20, choices=LOG_TYPE_CHOICES)
    log_date = models.DateField()
    start_time = models.DateTimeField()
    end_time = models.DateTimeField(null=True, blank=True)
    duration_minutes = models.PositiveIntegerField(null=True, blank=True)

    odometer_start = models.FloatField(null=True, blank=True)
    odometer_end = models.FloatField(null=True, blank=True)
    location_start = models.JSONField(null=True, blank=True)
    location_end = models.JSONField(null=True, blank=True)
    location_address = models.CharField(max_length=500, blank=True)

    certified = models.BooleanField(default=False)
    raw_data = models.JSONField(null=True, blank=True)

    class Meta:
        db_table = 'eld_duty_status_log'
        ordering = ['start_time']
        constraints = [
            models.UniqueConstraint(
                fields=['eld_device', 'external_id'],
                name='uniq_eld_log_external_id',
            ),
        ]
        indexes = [
            models.Index(fields=['driver', 'start_time'], name='eld_log_driver_start_idx'),
            models.Index(fields=['company', 'log_date'], name='eld_log_company_date_idx'),
        ]

    def __str__(self):
        return f"{self.get_log_type_display()} - {self.start_time}"


class LocationPing(BaseModel):
    """
    Single GPS sample. Append-only.
    """
    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name='location_pings'
    )
    eld_device = models.ForeignKey(
        ELDDevice,
        on_delete=models.CASCADE,
        related_name='location_pings'
    )
    truck = models.ForeignKey(
        Vehicle,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='location_pings'
    )
    driver = models.ForeignKey(
        Driver,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='location_pings'
    )
    external_id = models.CharField(max_length=100, null=True, blank=True)

    latitude = models.FloatField()
    longitude = models.FloatField()
    speed = models.FloatField(null=True, blank=True, help_text="MPH")
    heading = models.FloatField(null=True, blank=True)
    odometer = models.FloatField(null=True, blank=True)
    address = models.CharField(max_length=500, blank=True)
    engine_status = models.CharField(max_length=20, default='unknown')
    timestamp = models.DateTimeField()

    class Meta:
        db_table = 'eld_location_ping'
        ordering = ['-timestamp']
        constraints = [
            models.UniqueConstraint(
                fields=['eld_device', 'external_id'],
                name='uniq_eld_location_external_id',
            ),
        ]
        indexes = [
            models.Index(fields=['eld_device', '-timestamp'], name='eld_ping_device_ts_idx'),
            models.Index(fields=['truck', '-timestamp'], name='eld_ping_truck_ts_idx'),
        ]

    def __str__(self):
        return f"{self.latitude},{self.longitude} @ {self.timestamp}"


class ComplianceEvent(BaseModel):
    """
    Detected or reported violation/anomaly. Only ever resolved, never deleted.
    """
    EVENT_HOS_VIOLATION = 'hos_violation'
    EVENT_SPEEDING = 'speeding'
    EVENT_HARD_BRAKE = 'hard_brake'
    EVENT_DEVICE_MALFUNCTION = 'device_malfunction'
    EVENT_OTHER = 'other'

    EVENT_TYPE_CHOICES = [
        (EVENT_HOS_VIOLATION, 'HOS Violation'),
        (EVENT_SPEEDING, 'Speeding'),
        (EVENT_HARD_BRAKE, 'Hard Brake'),
        (EVENT_DEVICE_MALFUNCTION, 'Device Malfunction'),
        (EVENT_OTHER, 'Other'),
    ]

    SEVERITY_CHOICES = [
        ('info', 'Info'),
        ('warning', 'Warning'),
        ('critical', 'Critical'),
    ]

    SOURCE_PROVIDER = 'provider'
    SOURCE_MOBILE = 'mobile'
    SOURCE_CALCULATOR = 'calculator'

    SOURCE_CHOICES = [
        (SOURCE_PROVIDER, 'Provider webhook'),
        (SOURCE_MOBILE, 'Mobile app'),
        (SOURCE_CALCULATOR, 'HOS calculator'),
    ]

    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name='compliance_events'
    )
    eld_device = models.ForeignKey(
        ELDDevice,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='compliance_events'
    )
    truck = models.ForeignKey(
        Vehicle,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='compliance_events'
    )
    driver = models.ForeignKey(
        Driver,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='compliance_events'
    )
    external_id = models.CharField(max_length=100, null=True, blank=True)
    dedupe_key = models.CharField(
        max_length=200,
        null=True,
        blank=True,
        unique=True,
        help_text="Identity of a calculator-derived violation"
    )

    event_type = models.CharField(max_length=30, choices=EVENT_TYPE_CHOICES)
    severity = models.CharField(max_length=10, choices=SEVERITY_CHOICES, default='warning')
    source = models.CharField(max_length=20, choices=SOURCE_CHOICES, default=SOURCE_PROVIDER)
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    event_time = models.DateTimeField()
    location = models.JSONField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    # Resolution
    resolved = models.BooleanField(default=False)
    resolved_at = models.DateTimeField(null=True, blank=True)
    resolved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='resolved_compliance_events'
    )
    resolution_note = models.TextField(blank=True)

    # Notification tracking
    notified_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'eld_compliance_event'
        ordering = ['-event_time']
        constraints = [
            models.UniqueConstraint(
                fields=['eld_device', 'external_id'],
                name='uniq_eld_event_external_id',
            ),
        ]
        indexes = [
            models.Index(fields=['company', 'resolved', '-event_time'], name='eld_event_company_open_idx'),
            models.Index(fields=['driver', '-event_time'], name='eld_event_driver_time_idx'),
        ]

    def __str__(self):
        return f"{self.get_event_type_display()} - {self.title} ({self.severity})"

    def mark_resolved(self, user, note=""):
        """Mark event as resolved with an audit note."""
        self.resolved = True
        self.resolved_by = user
        self.resolved_at = timezone.now()
        self.resolution_note = note
        self.save(update_fields=['resolved', 'resolved_by', 'resolved_at', 'resolution_note', 'updated_at'])
