"""
Admin configuration for the ELD app.
"""
from django.contrib import admin
from .models import ELDDevice, DriverMapping, DutyStatusLog, LocationPing, ComplianceEvent


class DriverMappingInline(admin.TabularInline):
    model = DriverMapping
    extra = 0
    readonly_fields = ['created_at', 'updated_at']


@admin.register(ELDDevice)
class ELDDeviceAdmin(admin.ModelAdmin):
    list_display = [
        'id', 'device_name', 'provider', 'provider_device_id',
        'serial_number', 'company', 'truck', 'status', 'last_sync_at'
    ]
    list_filter = ['provider', 'status', 'company']
    search_fields = ['device_name', 'provider_device_id', 'serial_number']
    readonly_fields = ['last_sync_at', 'created_at', 'updated_at']
    inlines = [DriverMappingInline]


@admin.register(DriverMapping)
class DriverMappingAdmin(admin.ModelAdmin):
    list_display = ['provider', 'provider_driver_id', 'driver', 'eld_device', 'is_active', 'updated_at']
    list_filter = ['provider', 'is_active', 'company']
    search_fields = ['provider_driver_id', 'driver__name', 'driver_name']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(DutyStatusLog)
class DutyStatusLogAdmin(admin.ModelAdmin):
    list_display = [
        'id', 'driver', 'provider_driver_id', 'log_type', 'start_time',
        'end_time', 'duration_minutes', 'eld_device', 'certified'
    ]
    list_filter = ['log_type', 'certified', 'log_date', 'company']
    search_fields = ['driver__name', 'provider_driver_id', 'external_id']
    readonly_fields = ['raw_data', 'created_at', 'updated_at']
    date_hierarchy = 'start_time'

    fieldsets = (
        ('Segment', {
            'fields': (
                'company', 'driver', 'provider_driver_id', 'truck',
                'eld_device', 'external_id', 'log_type', 'log_date'
            )
        }),
        ('Timing', {
            'fields': ('start_time', 'end_time', 'duration_minutes')
        }),
        ('Location & Odometer', {
            'fields': (
                'odometer_start', 'odometer_end', 'location_start',
                'location_end', 'location_address'
            )
        }),
        ('Audit', {
            'fields': ('certified', 'raw_data', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(LocationPing)
class LocationPingAdmin(admin.ModelAdmin):
    list_display = ['eld_device', 'truck', 'driver', 'latitude', 'longitude', 'speed', 'timestamp']
    list_filter = ['engine_status', 'company']
    search_fields = ['eld_device__serial_number', 'address']
    readonly_fields = ['created_at', 'updated_at']
    date_hierarchy = 'timestamp'


@admin.register(ComplianceEvent)
class ComplianceEventAdmin(admin.ModelAdmin):
    list_display = [
        'id', 'event_type', 'severity', 'source', 'title', 'driver',
        'event_time', 'resolved', 'notified_at'
    ]
    list_filter = ['event_type', 'severity', 'source', 'resolved', 'company']
    search_fields = ['title', 'description', 'driver__name', 'dedupe_key']
    readonly_fields = ['dedupe_key', 'notified_at', 'resolved_at', 'resolved_by', 'created_at', 'updated_at']
