"""
Canonical record schemas every normalizer converges on.

A provider payload is first mapped field-by-field onto these shapes and then
validated here, so a malformed item yields a per-field error list instead of
a half-filled row.
"""
from datetime import timezone as dt_timezone

from rest_framework import serializers

from ..models import DutyStatusLog, ComplianceEvent


def _timestamp(**kwargs):
    # Naive timestamps from devices are UTC
    return serializers.DateTimeField(default_timezone=dt_timezone.utc, **kwargs)


class DutyStatusRecordSerializer(serializers.Serializer):
    external_id = serializers.CharField(max_length=100, allow_null=True, default=None)
    provider_driver_id = serializers.CharField(max_length=100, allow_null=True, default=None)
    log_type = serializers.ChoiceField(choices=DutyStatusLog.LOG_TYPE_CHOICES)
    start_time = _timestamp()
    end_time = _timestamp(allow_null=True, default=None)
    duration_minutes = serializers.IntegerField(min_value=0, allow_null=True, default=None)
    odometer_start = serializers.FloatField(allow_null=True, default=None)
    odometer_end = serializers.FloatField(allow_null=True, default=None)
    location_start = serializers.JSONField(allow_null=True, default=None)
    location_end = serializers.JSONField(allow_null=True, default=None)
    location_address = serializers.CharField(max_length=500, allow_blank=True, default='')
    certified = serializers.BooleanField(default=False)
    raw_data = serializers.JSONField(allow_null=True, default=None)

    def validate(self, attrs):
        start_time = attrs['start_time']
        end_time = attrs.get('end_time')

        if end_time is not None and end_time < start_time:
            raise serializers.ValidationError({'end_time': 'End time is before start time.'})

        if attrs.get('duration_minutes') is None and end_time is not None:
            attrs['duration_minutes'] = int((end_time - start_time).total_seconds() // 60)

        attrs['log_date'] = start_time.astimezone(dt_timezone.utc).date()
        return attrs


class LocationRecordSerializer(serializers.Serializer):
    external_id = serializers.CharField(max_length=100, allow_null=True, default=None)
    provider_driver_id = serializers.CharField(max_length=100, allow_null=True, default=None)
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    speed = serializers.FloatField(allow_null=True, default=None)
    heading = serializers.FloatField(allow_null=True, default=None)
    odometer = serializers.FloatField(allow_null=True, default=None)
    address = serializers.CharField(max_length=500, allow_blank=True, default='')
    engine_status = serializers.CharField(max_length=20, default='unknown')
    timestamp = _timestamp()


class ComplianceEventRecordSerializer(serializers.Serializer):
    external_id = serializers.CharField(max_length=100, allow_null=True, default=None)
    provider_driver_id = serializers.CharField(max_length=100, allow_null=True, default=None)
    event_type = serializers.ChoiceField(choices=ComplianceEvent.EVENT_TYPE_CHOICES)
    severity = serializers.ChoiceField(choices=ComplianceEvent.SEVERITY_CHOICES)
    title = serializers.CharField(max_length=200)
    description = serializers.CharField(allow_blank=True, default='')
    event_time = _timestamp()
    location = serializers.JSONField(allow_null=True, default=None)
    metadata = serializers.JSONField(default=dict)
