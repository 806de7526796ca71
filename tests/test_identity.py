"""
Tests for device and driver identity resolution.

Tests cover:
- Hardware devices by provider and provider device id
- Mobile devices by internal id within the caller's company
- Provider driver ids through active mappings
- Company isolation
"""

import pytest

from apps.eld.exceptions import ELDValidationError, NotFoundError
from apps.eld.identity import (
    DriverResolver,
    resolve_device,
    resolve_registered_device,
)
from apps.eld.models import DriverMapping, PROVIDER_SAMSARA, PROVIDER_MOBILE


@pytest.mark.django_db
class TestResolveDevice:
    """Test webhook device lookup."""

    def test_registered_device(self, samsara_device):
        """Test a known active device resolves."""
        assert resolve_device(PROVIDER_SAMSARA, "veh-100") == samsara_device

    def test_unknown_device(self, samsara_device):
        """Test an unregistered id is not found."""
        with pytest.raises(NotFoundError):
            resolve_device(PROVIDER_SAMSARA, "veh-999")

    def test_same_id_other_provider(self, samsara_device):
        """Test device ids are namespaced by provider."""
        with pytest.raises(NotFoundError):
            resolve_device("keeptruckin", "veh-100")

    def test_inactive_device(self, samsara_device):
        """Test a deactivated device is rejected."""
        samsara_device.status = "inactive"
        samsara_device.save()

        with pytest.raises(NotFoundError):
            resolve_device(PROVIDER_SAMSARA, "veh-100")

    def test_inactive_company(self, samsara_device, company):
        """Test devices of an inactive company are rejected."""
        company.is_active = False
        company.save()

        with pytest.raises(NotFoundError):
            resolve_device(PROVIDER_SAMSARA, "veh-100")

    def test_missing_id(self):
        """Test a payload without a device id is a validation error."""
        with pytest.raises(ELDValidationError):
            resolve_device(PROVIDER_SAMSARA, None)


@pytest.mark.django_db
class TestResolveRegisteredDevice:
    """Test mobile device lookup."""

    def test_own_device(self, company, mobile_device):
        """Test the caller's active device resolves by id or numeric string."""
        assert resolve_registered_device(company, mobile_device.pk) == mobile_device
        assert resolve_registered_device(company, str(mobile_device.pk)) == mobile_device

    def test_other_company_device(self, company, foreign_mobile_device):
        """Test another company's device is indistinguishable from a missing one."""
        with pytest.raises(NotFoundError) as exc_info:
            resolve_registered_device(company, foreign_mobile_device.pk)

        assert str(exc_info.value.detail) == "Device not found or access denied."

    def test_malformed_id(self, company):
        """Test non-numeric ids are not found."""
        with pytest.raises(NotFoundError):
            resolve_registered_device(company, "PHONE-1")

    def test_inactive_device(self, company, mobile_device):
        """Test a deactivated device cannot sync."""
        mobile_device.status = "inactive"
        mobile_device.save()

        with pytest.raises(NotFoundError):
            resolve_registered_device(company, mobile_device.pk)

    def test_hardware_device(self, company, samsara_device):
        """Test provider hardware cannot be written through mobile sync."""
        with pytest.raises(NotFoundError):
            resolve_registered_device(company, samsara_device.pk)


@pytest.mark.django_db
class TestDriverResolver:
    """Test provider driver id resolution."""

    def test_active_mapping(self, samsara_device, samsara_mapping, driver):
        """Test a mapped id resolves to the internal driver."""
        assert DriverResolver(samsara_device, PROVIDER_SAMSARA).resolve("drv-7") == driver

    def test_numeric_id_matches_string_mapping(self, samsara_device, driver):
        """Test integer ids from JSON match mappings stored as text."""
        DriverMapping.objects.create(
            company=samsara_device.company,
            eld_device=samsara_device,
            provider=PROVIDER_SAMSARA,
            provider_driver_id="42",
            driver=driver,
        )

        assert DriverResolver(samsara_device, PROVIDER_SAMSARA).resolve(42) == driver

    def test_inactive_mapping_ignored(self, samsara_device, samsara_mapping):
        """Test soft-deleted mappings no longer attribute records."""
        samsara_mapping.is_active = False
        samsara_mapping.save()

        assert DriverResolver(samsara_device, PROVIDER_SAMSARA).resolve("drv-7") is None

    def test_mapping_is_per_device(self, samsara_device, samsara_mapping, keeptruckin_device):
        """Test a mapping on one device does not apply to another."""
        assert DriverResolver(keeptruckin_device, "keeptruckin").resolve("drv-7") is None

    def test_mapping_to_foreign_driver_ignored(self, samsara_device, foreign_driver):
        """Test a mapping cannot attribute records across companies."""
        DriverMapping.objects.create(
            company=samsara_device.company,
            eld_device=samsara_device,
            provider=PROVIDER_SAMSARA,
            provider_driver_id="drv-x",
            driver=foreign_driver,
        )

        assert DriverResolver(samsara_device, PROVIDER_SAMSARA).resolve("drv-x") is None

    def test_blank_id(self, samsara_device):
        """Test absent ids resolve to nobody without a lookup."""
        resolver = DriverResolver(samsara_device)
        assert resolver.resolve(None) is None
        assert resolver.resolve("  ") is None

    def test_lookups_are_cached(self, samsara_device, samsara_mapping, django_assert_num_queries):
        """Test repeated ids in one batch hit the database once."""
        resolver = DriverResolver(samsara_device)
        resolver.resolve("drv-7")

        with django_assert_num_queries(0):
            assert resolver.resolve("drv-7") == samsara_mapping.driver

    def test_mobile_internal_driver_id(self, mobile_device, driver):
        """Test the mobile app may send the signed-in driver's internal id."""
        assert DriverResolver(mobile_device, PROVIDER_MOBILE).resolve(driver.pk) == driver

    def test_mobile_foreign_driver_id(self, mobile_device, foreign_driver):
        """Test internal ids from another company are not honoured."""
        assert DriverResolver(mobile_device, PROVIDER_MOBILE).resolve(foreign_driver.pk) is None
