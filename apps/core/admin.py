"""
Admin configuration for the core app.
"""
from django.contrib import admin
from .models import Company, Driver, Vehicle, CompanyMembership


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ['name', 'dot_number', 'hos_cycle', 'split_sleeper_enabled', 'is_active']
    list_filter = ['hos_cycle', 'split_sleeper_enabled', 'is_active']
    search_fields = ['name', 'dot_number', 'carrier_name']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(Driver)
class DriverAdmin(admin.ModelAdmin):
    list_display = ['name', 'company', 'license_number', 'hos_cycle', 'is_active']
    list_filter = ['company', 'is_active']
    search_fields = ['name', 'license_number', 'email']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ['vehicle_number', 'company', 'vin', 'license_plate', 'is_active']
    list_filter = ['company', 'is_active']
    search_fields = ['vehicle_number', 'vin', 'license_plate']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(CompanyMembership)
class CompanyMembershipAdmin(admin.ModelAdmin):
    list_display = ['user', 'company', 'role']
    list_filter = ['role', 'company']
    search_fields = ['user__username', 'user__email']
    readonly_fields = ['created_at', 'updated_at']
