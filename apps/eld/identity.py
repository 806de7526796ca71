"""
Identity resolution: provider device ids to registered devices, provider
driver ids to internal drivers.
"""
import logging

from apps.core.models import Driver
from .exceptions import ELDValidationError, NotFoundError
from .models import ELDDevice, DriverMapping, PROVIDER_MOBILE

logger = logging.getLogger(__name__)


def resolve_device(provider, provider_device_id):
    """
    Registered, active device for a hardware webhook. Unknown devices are
    rejected: nothing ties them to a company.
    """
    if not provider_device_id:
        raise ELDValidationError('Payload does not identify a device.')

    device = (
        ELDDevice.objects
        .select_related('company', 'truck')
        .filter(provider=provider, provider_device_id=str(provider_device_id))
        .first()
    )
    if device is None or not device.is_active or not device.company.is_active:
        logger.warning(f"{provider} webhook for unknown or inactive device {provider_device_id}")
        raise NotFoundError()
    return device


def resolve_registered_device(company, device_id):
    """
    Active mobile device owned by the caller's company, looked up by internal
    id. Hardware devices only accept signed provider webhooks.
    """
    try:
        pk = int(device_id)
    except (TypeError, ValueError):
        logger.warning(f"Mobile sync with malformed device id {device_id!r}")
        raise NotFoundError('Device not found or access denied.')

    device = (
        ELDDevice.objects
        .select_related('company', 'truck')
        .filter(pk=pk, company=company, provider=PROVIDER_MOBILE, status='active')
        .first()
    )
    if device is None:
        logger.warning(f"Mobile sync for unknown or non-mobile device {pk} (company {company.pk})")
        raise NotFoundError('Device not found or access denied.')
    return device


class DriverResolver:
    """
    Resolves provider driver ids for one device within one request.

    An unresolved id yields None: the record is still stored, unattributed.
    """

    def __init__(self, device, provider=None):
        self.device = device
        self.provider = provider or device.provider
        self._cache = {}

    def resolve(self, provider_driver_id):
        if provider_driver_id is None:
            return None
        key = str(provider_driver_id).strip()
        if not key:
            return None
        if key not in self._cache:
            self._cache[key] = self._lookup(key)
        return self._cache[key]

    def _lookup(self, key):
        # The mobile app is signed in as an internal driver and sends its id
        if self.provider == PROVIDER_MOBILE and key.isdigit():
            driver = Driver.objects.filter(pk=int(key), company_id=self.device.company_id).first()
            if driver is not None:
                return driver

        mapping = (
            DriverMapping.objects
            .select_related('driver')
            .filter(
                eld_device=self.device,
                provider=self.provider,
                provider_driver_id=key,
                is_active=True,
                driver__company_id=self.device.company_id,
            )
            .first()
        )
        if mapping is not None:
            return mapping.driver

        logger.info(
            f"No active driver mapping for {self.provider} driver {key} "
            f"on device {self.device.pk}; storing unattributed"
        )
        return None
