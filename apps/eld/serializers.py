"""
Serializers for the ELD app.
"""
from rest_framework import serializers
from apps.core.models import Vehicle
from apps.core.serializers import DriverSummarySerializer, VehicleSummarySerializer
from .models import (
    ELDDevice, DriverMapping, DutyStatusLog, ComplianceEvent,
    HARDWARE_PROVIDERS, PROVIDER_CHOICES,
)


class ELDDeviceSerializer(serializers.ModelSerializer):
    """
    Serializer for ELDDevice model. Hardware devices are registered here;
    mobile devices register themselves.
    """
    provider = serializers.ChoiceField(
        choices=[choice for choice in PROVIDER_CHOICES if choice[0] in HARDWARE_PROVIDERS]
    )
    provider_display = serializers.CharField(source='get_provider_display', read_only=True)
    truck = VehicleSummarySerializer(read_only=True)
    truck_id = serializers.PrimaryKeyRelatedField(
        source='truck',
        queryset=Vehicle.objects.none(),
        required=False,
        allow_null=True,
        write_only=True,
    )

    class Meta:
        model = ELDDevice
        fields = [
            'id', 'device_name', 'provider', 'provider_display',
            'provider_device_id', 'serial_number', 'truck', 'truck_id',
            'status', 'firmware_version', 'last_sync_at', 'created_at'
        ]
        read_only_fields = ['status', 'last_sync_at', 'created_at']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        company = self.context.get('company')
        if company is not None:
            self.fields['truck_id'].queryset = Vehicle.objects.filter(company=company)


class MobileDeviceSerializer(serializers.ModelSerializer):
    truck_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = ELDDevice
        fields = [
            'id', 'device_name', 'serial_number', 'provider', 'status',
            'truck_id', 'firmware_version', 'last_sync_at'
        ]


class MobileRegisterSerializer(serializers.Serializer):
    device_name = serializers.CharField(max_length=200)
    serial_number = serializers.CharField(max_length=100)
    truck_id = serializers.IntegerField(required=False, allow_null=True)
    app_version = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    device_info = serializers.DictField(required=False, default=dict)


class MobileSyncSerializer(serializers.Serializer):
    """
    Envelope of a mobile batch. Items are validated one by one later so a bad
    item never sinks the batch.
    """
    records_key = None

    device_id = serializers.CharField()

    def get_records(self):
        return self.validated_data[self.records_key]


def _records_field():
    return serializers.ListField(child=serializers.JSONField(), allow_empty=False)


class MobileLocationSyncSerializer(MobileSyncSerializer):
    records_key = 'locations'
    locations = _records_field()


class MobileLogSyncSerializer(MobileSyncSerializer):
    records_key = 'logs'
    logs = _records_field()


class MobileEventSyncSerializer(MobileSyncSerializer):
    records_key = 'events'
    events = _records_field()


class DriverMappingSerializer(serializers.ModelSerializer):
    """
    Serializer for DriverMapping model.
    """
    device_id = serializers.IntegerField(source='eld_device_id', read_only=True)
    driver = DriverSummarySerializer(read_only=True)

    class Meta:
        model = DriverMapping
        fields = [
            'id', 'device_id', 'provider', 'provider_driver_id', 'driver',
            'driver_name', 'driver_email', 'is_active', 'created_at', 'updated_at'
        ]


class DriverMappingCreateSerializer(serializers.Serializer):
    device_id = serializers.IntegerField()
    provider_driver_id = serializers.CharField(max_length=100)
    driver_id = serializers.IntegerField()
    provider = serializers.ChoiceField(choices=PROVIDER_CHOICES, required=False)
    driver_name = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    driver_email = serializers.EmailField(required=False, allow_blank=True, default='')


class DutyStatusLogSerializer(serializers.ModelSerializer):
    log_type_display = serializers.CharField(source='get_log_type_display', read_only=True)

    class Meta:
        model = DutyStatusLog
        fields = [
            'id', 'driver', 'provider_driver_id', 'truck', 'eld_device',
            'external_id', 'log_type', 'log_type_display', 'log_date',
            'start_time', 'end_time', 'duration_minutes', 'odometer_start',
            'odometer_end', 'location_start', 'location_end',
            'location_address', 'certified', 'updated_at'
        ]


class DutyStatusLogAssignSerializer(serializers.Serializer):
    driver_id = serializers.IntegerField()


class ComplianceEventSerializer(serializers.ModelSerializer):
    """
    Serializer for ComplianceEvent model.
    """
    event_type_display = serializers.CharField(source='get_event_type_display', read_only=True)
    severity_display = serializers.CharField(source='get_severity_display', read_only=True)
    driver = DriverSummarySerializer(read_only=True)
    resolved_by = serializers.CharField(source='resolved_by.username', read_only=True, default=None)

    class Meta:
        model = ComplianceEvent
        fields = [
            'id', 'event_type', 'event_type_display', 'severity',
            'severity_display', 'source', 'title', 'description',
            'event_time', 'location', 'metadata', 'driver', 'truck',
            'eld_device', 'external_id', 'resolved', 'resolved_at',
            'resolved_by', 'resolution_note', 'notified_at', 'created_at'
        ]


class ComplianceEventResolveSerializer(serializers.Serializer):
    note = serializers.CharField(required=False, allow_blank=True, default='')
