"""
One normalizer per upstream format, selected by provider name.
"""
from .base import (
    BaseNormalizer,
    NormalizationFailure,
    NormalizationResult,
    KIND_LOG,
    KIND_LOCATION,
    KIND_VIOLATION,
)
from .geotab import GeotabNormalizer
from .keeptruckin import KeepTruckinNormalizer
from .mobile import MobileNormalizer
from .samsara import SamsaraNormalizer

NORMALIZERS = {
    normalizer.provider: normalizer
    for normalizer in (
        SamsaraNormalizer(),
        KeepTruckinNormalizer(),
        GeotabNormalizer(),
        MobileNormalizer(),
    )
}


def get_normalizer(provider):
    try:
        return NORMALIZERS[provider]
    except KeyError:
        raise ValueError(f"Unsupported ELD provider '{provider}'")


__all__ = [
    'BaseNormalizer',
    'NormalizationFailure',
    'NormalizationResult',
    'KIND_LOG',
    'KIND_LOCATION',
    'KIND_VIOLATION',
    'GeotabNormalizer',
    'KeepTruckinNormalizer',
    'MobileNormalizer',
    'SamsaraNormalizer',
    'get_normalizer',
]
