"""
Application constants and configuration.

Crop-tool geometry, export settings, brand defaults for the rendered
signature, and the settings-backend selection all live here.  Values that
differ per deployment (backend URL, local admin password, log level) are
read from the environment.

The ``config_dir()`` helper returns the platform-appropriate config
directory and is shared by all persistence modules (settings store).
"""

import os
import sys
from pathlib import Path

# =============================================================================
# APP IDENTITY & CONFIG DIRECTORY
# =============================================================================
APP_NAME = "signature-generator"


def config_dir() -> Path:
    """Return the platform-appropriate config directory, creating it if needed."""
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    directory = base / APP_NAME
    directory.mkdir(parents=True, exist_ok=True)
    return directory


# =============================================================================
# CROP TOOL
# =============================================================================
# Diameter of the visible crop circle (viewport pixels)
CIRCLE_DIAMETER = 200

# Side of the square crop viewport (viewport pixels)
CROP_VIEWPORT_SIZE = 300

# Side of the committed raster (output pixels)
OUTPUT_SIZE = 150

# Zoom slider range; the session itself accepts any positive zoom
ZOOM_MIN = 1.0
ZOOM_MAX = 3.0
ZOOM_STEP = 0.01
WHEEL_ZOOM_STEP = 0.1

# Dim overlay outside the crop circle (RGBA)
CROP_DIM_COLOR = (0, 0, 0, 150)

# PNG compression level (0-9, 9 = maximum compression)
PNG_COMPRESS_LEVEL = 9

# Supported photo extensions (PSD is flattened through psd-tools)
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tiff", ".tif", ".webp", ".psd"}

# =============================================================================
# SHARED SETTINGS
# =============================================================================
DEFAULT_SETTINGS = {
    "awards": [],
    "companyTagline": "",
    "logoUrl": "",
}

MAX_AWARDS = 12
MAX_TAGLINE_LENGTH = 280

# ---------------------------------------------------------------------------
# Backend selection
# ---------------------------------------------------------------------------
# When set, settings and uploads go through the HTTP API; otherwise the
# local JSON store in config_dir() is used.
API_URL = os.environ.get("SIGNATURE_API_URL", "").rstrip("/")

# Shared secret for the local store (the HTTP API checks its own)
LOCAL_ADMIN_PASSWORD = os.environ.get("SIGNATURE_ADMIN_PASSWORD", "admin")

# Seconds before an API request is abandoned
REQUEST_TIMEOUT = 15

LOG_LEVEL = os.environ.get("SIGNATURE_LOG_LEVEL", "INFO").upper()

# =============================================================================
# SIGNATURE BRANDING
# =============================================================================
COMPANY_NAME = "Revent"
DEFAULT_NAME = "Your Name"
DEFAULT_TITLE = "Your Title"
DEFAULT_EMAIL = "john@revent.store"
DEFAULT_WEBSITE = "https://revent.store"

BRAND_COLOR = "#5986d8"
TEXT_COLOR = "#1e293b"
MUTED_COLOR = "#64748b"
PHOTO_RING_GRADIENT = "linear-gradient(135deg,#11c5ce,#5986d8,#895cdf,#e40eeb)"

# Displayed size of the photo inside the signature (the raster is larger)
SIGNATURE_PHOTO_SIZE = 84
SIGNATURE_LOGO_WIDTH = 110
AWARD_BADGE_SIZE = 48

ICON_URLS = {
    "email": "https://cdn-icons-png.flaticon.com/16/561/561127.png",
    "phone": "https://cdn-icons-png.flaticon.com/16/724/724664.png",
    "website": "https://cdn-icons-png.flaticon.com/16/1006/1006771.png",
    "linkedin": "https://cdn-icons-png.flaticon.com/24/174/174857.png",
    "twitter": "https://cdn-icons-png.flaticon.com/24/5968/5968830.png",
}

# How long status-bar notices stay visible (ms)
NOTICE_TIMEOUT_MS = 3000
