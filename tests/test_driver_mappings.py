"""
Tests for dispatcher-managed driver mappings.

Tests cover:
- Creating and re-pointing a mapping
- Soft delete
- Listing by device
- Staff-only writes and company isolation
- Attribution of later webhook deliveries
- Backfill of logs stored before the mapping
"""

import pytest

from apps.eld.models import DriverMapping, DutyStatusLog, PROVIDER_SAMSARA
from tests.utils import at

MAPPINGS_URL = "/api/v1/eld/driver-mappings/"


@pytest.mark.django_db
class TestCreateMapping:
    """Test POST /driver-mappings/."""

    def test_create(self, dispatcher_client, samsara_device, driver):
        """Test a new mapping defaults its provider to the device's."""
        response = dispatcher_client.post(
            MAPPINGS_URL,
            {"device_id": samsara_device.pk, "provider_driver_id": "drv-7", "driver_id": driver.pk},
            format="json",
        )

        assert response.status_code == 201
        data = response.json()
        assert data["device_id"] == samsara_device.pk
        assert data["provider"] == PROVIDER_SAMSARA
        assert data["provider_driver_id"] == "drv-7"
        assert data["driver"]["id"] == driver.pk
        assert data["is_active"] is True

    def test_same_key_repoints(self, dispatcher_client, samsara_mapping, second_driver):
        """Test mapping an already mapped id updates the active mapping."""
        response = dispatcher_client.post(
            MAPPINGS_URL,
            {
                "device_id": samsara_mapping.eld_device_id,
                "provider_driver_id": "drv-7",
                "driver_id": second_driver.pk,
            },
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["id"] == samsara_mapping.pk
        active = DriverMapping.objects.filter(is_active=True)
        assert active.count() == 1
        assert active.get().driver == second_driver

    def test_numeric_provider_id(self, dispatcher_client, samsara_device, driver):
        """Test integer provider ids are stored as text."""
        response = dispatcher_client.post(
            MAPPINGS_URL,
            {"device_id": samsara_device.pk, "provider_driver_id": 42, "driver_id": driver.pk},
            format="json",
        )

        assert response.status_code == 201
        assert DriverMapping.objects.get().provider_driver_id == "42"

    def test_foreign_device(self, dispatcher_client, foreign_mobile_device, driver):
        """Test mappings cannot target another company's device."""
        response = dispatcher_client.post(
            MAPPINGS_URL,
            {"device_id": foreign_mobile_device.pk, "provider_driver_id": "x", "driver_id": driver.pk},
            format="json",
        )

        assert response.status_code == 404

    def test_foreign_driver(self, dispatcher_client, samsara_device, foreign_driver):
        """Test mappings cannot point at another company's driver."""
        response = dispatcher_client.post(
            MAPPINGS_URL,
            {"device_id": samsara_device.pk, "provider_driver_id": "x", "driver_id": foreign_driver.pk},
            format="json",
        )

        assert response.status_code == 404
        assert DriverMapping.objects.count() == 0

    def test_driver_role_forbidden(self, driver_client, samsara_device, driver):
        """Test drivers cannot manage mappings."""
        response = driver_client.post(
            MAPPINGS_URL,
            {"device_id": samsara_device.pk, "provider_driver_id": "drv-7", "driver_id": driver.pk},
            format="json",
        )

        assert response.status_code == 403

    def test_missing_fields(self, dispatcher_client, samsara_device):
        """Test the driver id is required."""
        response = dispatcher_client.post(
            MAPPINGS_URL, {"device_id": samsara_device.pk, "provider_driver_id": "drv-7"}, format="json"
        )

        assert response.status_code == 400
        assert "driver_id" in response.json()

    def test_mapping_attributes_later_deliveries(self, dispatcher_client, post_webhook,
                                                 samsara_device, driver):
        """Test logs arriving after the mapping are attributed to the driver."""
        dispatcher_client.post(
            MAPPINGS_URL,
            {"device_id": samsara_device.pk, "provider_driver_id": "drv-7", "driver_id": driver.pk},
            format="json",
        )

        post_webhook(PROVIDER_SAMSARA, {
            "eventType": "hos_logs",
            "vehicle": {"id": "veh-100"},
            "logs": [{
                "id": "L1",
                "driver": {"id": "drv-7"},
                "dutyStatus": "driving",
                "startTime": "2024-03-04T00:00:00Z",
            }],
        })

        assert DutyStatusLog.objects.get().driver == driver

    def test_mapping_backfills_earlier_deliveries(self, dispatcher_client, post_webhook,
                                                  samsara_device, driver, make_log, second_driver):
        """Test logs stored before the mapping existed are attributed and counted."""
        post_webhook(PROVIDER_SAMSARA, {
            "eventType": "hos_logs",
            "vehicle": {"id": "veh-100"},
            "logs": [{
                "id": "L1",
                "driver": {"id": "drv-7"},
                "dutyStatus": "driving",
                "startTime": "2024-03-04T00:00:00Z",
                "endTime": "2024-03-04T04:00:00Z",
            }],
        })
        other = make_log(None, "driving", at(4), at(5), provider_driver_id="drv-8")
        attributed = make_log(second_driver, "on_duty", at(5), at(6), provider_driver_id="drv-7")
        hos_url = f"/api/v1/eld/drivers/{driver.pk}/hos/"
        assert dispatcher_client.get(hos_url, {"as_of": "2024-03-04T04:00:00Z"}).json()["driving_hours"] == 0

        dispatcher_client.post(
            MAPPINGS_URL,
            {"device_id": samsara_device.pk, "provider_driver_id": "drv-7", "driver_id": driver.pk},
            format="json",
        )

        assert DutyStatusLog.objects.get(external_id="L1").driver == driver
        other.refresh_from_db()
        attributed.refresh_from_db()
        assert other.driver is None
        assert attributed.driver == second_driver
        data = dispatcher_client.get(hos_url, {"as_of": "2024-03-04T04:00:00Z"}).json()
        assert data["driving_hours"] == 4.0


@pytest.mark.django_db
class TestListAndDeleteMappings:
    """Test GET and DELETE on mappings."""

    def test_list_filtered_by_device(self, dispatcher_client, samsara_mapping, keeptruckin_device, driver):
        """Test ?device= restricts the list."""
        DriverMapping.objects.create(
            company=keeptruckin_device.company,
            eld_device=keeptruckin_device,
            provider="keeptruckin",
            provider_driver_id="kt-9",
            driver=driver,
        )

        all_mappings = dispatcher_client.get(MAPPINGS_URL).json()
        samsara_only = dispatcher_client.get(
            MAPPINGS_URL, {"device": samsara_mapping.eld_device_id}
        ).json()

        assert all_mappings["count"] == 2
        assert samsara_only["count"] == 1
        assert samsara_only["results"][0]["id"] == samsara_mapping.pk

    def test_list_bad_device_param(self, dispatcher_client):
        """Test a non-numeric device filter is rejected."""
        response = dispatcher_client.get(MAPPINGS_URL, {"device": "abc"})

        assert response.status_code == 400

    def test_list_is_company_scoped(self, foreign_client, samsara_mapping):
        """Test other companies see none of our mappings."""
        response = foreign_client.get(MAPPINGS_URL)

        assert response.status_code == 200
        assert response.json()["count"] == 0

    def test_delete_is_soft(self, dispatcher_client, samsara_mapping):
        """Test DELETE deactivates and keeps the row."""
        response = dispatcher_client.delete(f"{MAPPINGS_URL}{samsara_mapping.pk}/")

        assert response.status_code == 204
        samsara_mapping.refresh_from_db()
        assert samsara_mapping.is_active is False
        assert dispatcher_client.get(MAPPINGS_URL).json()["count"] == 0

    def test_remap_after_delete(self, dispatcher_client, samsara_mapping, second_driver):
        """Test a deactivated key can be mapped again."""
        dispatcher_client.delete(f"{MAPPINGS_URL}{samsara_mapping.pk}/")

        response = dispatcher_client.post(
            MAPPINGS_URL,
            {
                "device_id": samsara_mapping.eld_device_id,
                "provider_driver_id": "drv-7",
                "driver_id": second_driver.pk,
            },
            format="json",
        )

        assert response.status_code == 201
        assert DriverMapping.objects.count() == 2

    def test_delete_foreign_mapping(self, foreign_client, samsara_mapping):
        """Test another company cannot delete our mapping."""
        response = foreign_client.delete(f"{MAPPINGS_URL}{samsara_mapping.pk}/")

        assert response.status_code == 404
        samsara_mapping.refresh_from_db()
        assert samsara_mapping.is_active is True
