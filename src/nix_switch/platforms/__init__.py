"""Platform capability records and override loading."""

from .loader import (
    BUILTIN_PLATFORMS,
    PlatformLoadError,
    PlatformLoader,
    detect_family,
    load_platform,
)
from .models import PlatformFamily, PlatformProfile

__all__ = [
    "BUILTIN_PLATFORMS",
    "PlatformFamily",
    "PlatformLoadError",
    "PlatformLoader",
    "PlatformProfile",
    "detect_family",
    "load_platform",
]
