"""
Pytest configuration and fixtures for the ELD compliance API tests.

Provides companies, drivers and users with company memberships, registered
devices for every provider, authenticated API clients and a helper that
signs webhook bodies the way each provider does.
"""

import json

import pytest
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from apps.core.models import Company, CompanyMembership, Driver, Vehicle
from apps.eld.models import (
    ELDDevice,
    DriverMapping,
    DutyStatusLog,
    PROVIDER_SAMSARA,
    PROVIDER_KEEPTRUCKIN,
    PROVIDER_GEOTAB,
    PROVIDER_MOBILE,
)
from apps.eld.signatures import SIGNATURE_SCHEMES


# =============================================================================
# Cache
# =============================================================================


@pytest.fixture(autouse=True)
def clear_cache():
    """Warning de-duplication lives in the cache; start every test clean."""
    cache.clear()
    yield
    cache.clear()


# =============================================================================
# Companies, drivers, vehicles
# =============================================================================


@pytest.fixture
def company(db):
    return Company.objects.create(name="Acme Freight", dot_number="1234567")


@pytest.fixture
def other_company(db):
    return Company.objects.create(name="Rival Haulage", dot_number="7654321")


@pytest.fixture
def driver(company):
    return Driver.objects.create(company=company, name="Dana Reyes", email="dana@acme.test")


@pytest.fixture
def second_driver(company):
    return Driver.objects.create(company=company, name="Sam Okafor")


@pytest.fixture
def foreign_driver(other_company):
    return Driver.objects.create(company=other_company, name="Lee Novak")


@pytest.fixture
def truck(company):
    return Vehicle.objects.create(company=company, vehicle_number="101")


@pytest.fixture
def foreign_truck(other_company):
    return Vehicle.objects.create(company=other_company, vehicle_number="900")


# =============================================================================
# Users and clients
# =============================================================================


@pytest.fixture
def make_user(db):
    """Factory: user attached to ``company`` with ``role``."""
    User = get_user_model()
    counter = {"n": 0}

    def _make(company, role="dispatcher"):
        counter["n"] += 1
        user = User.objects.create_user(
            username=f"{role}{counter['n']}",
            email=f"{role}{counter['n']}@example.test",
            password="not-a-real-password",
        )
        CompanyMembership.objects.create(user=user, company=company, role=role)
        return user

    return _make


@pytest.fixture
def manager_user(make_user, company):
    return make_user(company, "manager")


@pytest.fixture
def dispatcher_user(make_user, company):
    return make_user(company, "dispatcher")


@pytest.fixture
def driver_user(make_user, company):
    return make_user(company, "driver")


@pytest.fixture
def api_client():
    return APIClient()


def _client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def dispatcher_client(dispatcher_user):
    return _client_for(dispatcher_user)


@pytest.fixture
def manager_client(manager_user):
    return _client_for(manager_user)


@pytest.fixture
def driver_client(driver_user):
    return _client_for(driver_user)


@pytest.fixture
def foreign_client(make_user, other_company):
    return _client_for(make_user(other_company, "manager"))


# =============================================================================
# Devices and mappings
# =============================================================================


@pytest.fixture
def samsara_device(company, truck):
    return ELDDevice.objects.create(
        company=company,
        device_name="Samsara VG54",
        provider=PROVIDER_SAMSARA,
        provider_device_id="veh-100",
        serial_number="SAM-100",
        truck=truck,
    )


@pytest.fixture
def keeptruckin_device(company, truck):
    return ELDDevice.objects.create(
        company=company,
        device_name="Motive Vehicle Gateway",
        provider=PROVIDER_KEEPTRUCKIN,
        provider_device_id="kt-200",
        serial_number="KT-200",
        truck=truck,
    )


@pytest.fixture
def geotab_device(company, truck):
    return ELDDevice.objects.create(
        company=company,
        device_name="Geotab GO9",
        provider=PROVIDER_GEOTAB,
        provider_device_id="b1A",
        serial_number="GEO-300",
        truck=truck,
    )


@pytest.fixture
def mobile_device(company, truck):
    return ELDDevice.objects.create(
        company=company,
        device_name="Dana's phone",
        provider=PROVIDER_MOBILE,
        provider_device_id="PHONE-1",
        serial_number="PHONE-1",
        truck=truck,
    )


@pytest.fixture
def foreign_mobile_device(other_company):
    return ELDDevice.objects.create(
        company=other_company,
        device_name="Other phone",
        provider=PROVIDER_MOBILE,
        provider_device_id="PHONE-9",
        serial_number="PHONE-9",
    )


@pytest.fixture
def samsara_mapping(samsara_device, driver):
    return DriverMapping.objects.create(
        company=samsara_device.company,
        eld_device=samsara_device,
        provider=PROVIDER_SAMSARA,
        provider_driver_id="drv-7",
        driver=driver,
    )


@pytest.fixture
def make_log(samsara_device):
    """Factory: stored duty-status segment for ``driver`` on the Samsara unit."""

    def _make(driver, log_type, start, end=None, device=None, **kwargs):
        device = device or samsara_device
        return DutyStatusLog.objects.create(
            company=device.company,
            eld_device=device,
            truck=device.truck,
            driver=driver,
            log_type=log_type,
            log_date=start.date(),
            start_time=start,
            end_time=end,
            **kwargs
        )

    return _make


# =============================================================================
# Webhook signing
# =============================================================================


@pytest.fixture
def post_webhook(api_client):
    """
    POST a JSON body to a provider webhook, signed with the configured
    secret unless ``signature`` is given explicitly.
    """

    def _post(provider, payload, signature=None, secret=None):
        body = json.dumps(payload).encode("utf-8")
        scheme = SIGNATURE_SCHEMES[provider]
        if signature is None:
            signature = scheme.sign(secret or settings.ELD_WEBHOOK_SECRETS[provider], body)
        return api_client.post(
            f"/api/v1/eld/webhooks/{provider}/",
            data=body,
            content_type="application/json",
            **{scheme.meta_key: signature},
        )

    return _post
