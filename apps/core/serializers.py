"""
Serializers for core records referenced by ELD data.
"""
from rest_framework import serializers
from .models import Driver, Vehicle


class DriverSummarySerializer(serializers.ModelSerializer):
    """
    Lightweight driver representation for embedding.
    """

    class Meta:
        model = Driver
        fields = ['id', 'name', 'email', 'phone', 'license_number']
        read_only_fields = fields


class VehicleSummarySerializer(serializers.ModelSerializer):
    """
    Lightweight vehicle representation for embedding.
    """

    class Meta:
        model = Vehicle
        fields = ['id', 'vehicle_number', 'vin', 'license_plate']
        read_only_fields = fields
