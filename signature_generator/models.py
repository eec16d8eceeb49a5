"""
Data models and crop-geometry utilities.

SignatureFields and SignatureSettings are the data structures shared by the
form, the admin dialog, the settings backends and the renderer.
``SignatureSettings`` round-trips through the camelCase wire shape used by
the settings API (``companyTagline``, ``logoUrl``).  CropBox is the square
source-space region produced by the crop session.  The helper functions at
the bottom hold the contain-fit and centering math.
"""

import math
from dataclasses import dataclass, field


# =============================================================================
# Data classes
# =============================================================================
@dataclass
class CropBox:
    """Square crop region in source-image pixel coordinates (floats)."""
    left: float = 0.0
    top: float = 0.0
    size: float = 0.0

    @property
    def right(self) -> float:
        return self.left + self.size

    @property
    def bottom(self) -> float:
        return self.top + self.size

    def as_extent(self) -> tuple[float, float, float, float]:
        """Return ``(left, top, right, bottom)`` for Pillow's EXTENT transform."""
        return (self.left, self.top, self.right, self.bottom)


@dataclass
class SignatureSettings:
    """Shared company assets managed from the admin dialog."""
    awards: list = field(default_factory=list)  # award badge image URLs
    company_tagline: str = ""
    logo_url: str = ""

    @classmethod
    def from_dict(cls, data: dict | None) -> "SignatureSettings":
        """Build from the wire shape, tolerating missing or null values."""
        data = data or {}
        awards = data.get("awards") or []
        return cls(
            awards=[str(a) for a in awards if a],
            company_tagline=data.get("companyTagline") or "",
            logo_url=data.get("logoUrl") or "",
        )

    def to_dict(self) -> dict:
        return {
            "awards": list(self.awards),
            "companyTagline": self.company_tagline,
            "logoUrl": self.logo_url,
        }


@dataclass
class SignatureFields:
    """Per-user form values; empty strings mean "not provided"."""
    full_name: str = ""
    job_title: str = ""
    email: str = ""
    phone: str = ""
    website: str = ""
    linkedin: str = ""
    twitter: str = ""
    photo_url: str = ""  # data URL or hosted URL of the cropped photo


@dataclass
class StorageStatus:
    """Whether uploaded images get durable public URLs."""
    configured: bool = False
    message: str = ""
    provider: str = ""


# =============================================================================
# Crop math utilities
# =============================================================================
def is_valid_dimension(value) -> bool:
    """True for finite, strictly positive numbers."""
    try:
        return math.isfinite(value) and value > 0
    except TypeError:
        return False


def contain_fit(src_w: float, src_h: float, diameter: float) -> tuple[float, float]:
    """Scale so the shorter edge equals *diameter*, preserving aspect ratio."""
    ratio = src_w / src_h
    if ratio > 1:
        return diameter * ratio, float(diameter)
    return float(diameter), diameter / ratio


def centered_offset(viewport_w: float, viewport_h: float, w: float, h: float) -> tuple[float, float]:
    """Top-left position that centers a ``w``×``h`` box in the viewport."""
    return (viewport_w - w) / 2, (viewport_h - h) / 2
