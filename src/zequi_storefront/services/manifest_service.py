"""Installable-app manifest generated from the current logo.

The manifest and its icons are rebuilt whenever the logo document changes,
so the home-screen icon always matches the brand mark shown on the site.
"""

import base64
import binascii
import logging
from io import BytesIO
from typing import Any

from PIL import Image, ImageDraw, ImageFont

from zequi_storefront.models.settings_models import StorefrontSettings
from zequi_storefront.models.site_models import LogoData
from zequi_storefront.services.errors import ImageProcessingError
from zequi_storefront.services.image_service import decode_image
from zequi_storefront.services.site_service import SiteService
from zequi_storefront.services.subscription_hub import Subscription

logger = logging.getLogger(__name__)

BACKGROUND_COLOR = "#050505"
BADGE_COLOR = "#8B0000"
LETTER_COLOR = "#FFFFFF"
ICON_SIZES = (192, 512)
MANIFEST_MEDIA_TYPE = "application/manifest+json"


def decode_data_url(data_url: str) -> bytes:
    """Bytes of a base64 data URL (or of bare base64).

    Raises:
        ImageProcessingError: If the payload is not valid base64
    """
    payload = data_url.split(",", 1)[1] if data_url.startswith("data:") else data_url
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageProcessingError(f"Invalid inline image: {e}") from e


def draw_text_icon(logo: LogoData, size: int) -> Image.Image:
    """Letter badge: the logo letter on a dark-red disc over a black square."""
    icon = Image.new("RGB", (size, size), BACKGROUND_COLOR)
    draw = ImageDraw.Draw(icon)

    radius = size * 0.42
    center = size / 2
    draw.ellipse(
        (center - radius, center - radius, center + radius, center + radius),
        fill=BADGE_COLOR,
    )

    letter = logo.letter or "Z"
    font = ImageFont.load_default(size=round(size * 0.38))
    left, top, right, bottom = draw.textbbox((0, 0), letter, font=font)
    x = center - (right - left) / 2 - left
    y = center - (bottom - top) / 2 - top + size * 0.02
    draw.text((x, y), letter, fill=LETTER_COLOR, font=font)
    return icon


def draw_image_icon(logo: LogoData, size: int) -> Image.Image:
    """The uploaded logo scaled to ``size`` and clipped to a circle.

    Raises:
        ImageProcessingError: If the stored logo cannot be decoded
    """
    source = decode_image(decode_data_url(logo.image_base64))
    scaled = source.resize((size, size), Image.Resampling.LANCZOS)

    mask = Image.new("L", (size, size), 0)
    ImageDraw.Draw(mask).ellipse((0, 0, size, size), fill=255)

    icon = Image.new("RGB", (size, size), BACKGROUND_COLOR)
    icon.paste(scaled, (0, 0), mask)
    return icon


def render_icon(logo: LogoData, size: int) -> bytes:
    """PNG bytes of the app icon, falling back to the letter badge."""
    if logo.uses_image:
        try:
            icon = draw_image_icon(logo, size)
        except ImageProcessingError as e:
            logger.warning(f"Logo image unusable for {size}px icon, drawing letter: {e}")
            icon = draw_text_icon(logo, size)
    else:
        icon = draw_text_icon(logo, size)

    buffer = BytesIO()
    icon.save(buffer, format="PNG")
    return buffer.getvalue()


def png_data_url(png: bytes) -> str:
    """Inline ``data:image/png`` URL for PNG bytes."""
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def build_manifest(logo: LogoData, settings: StorefrontSettings) -> tuple[dict[str, Any], bytes]:
    """Assemble the manifest for ``logo``.

    Returns:
        tuple: (manifest dictionary, 192px PNG for the touch icon)
    """
    icons = {size: render_icon(logo, size) for size in ICON_SIZES}

    manifest = {
        "name": settings.app_name,
        "short_name": settings.app_short_name,
        "description": settings.app_description,
        "start_url": "/",
        "scope": "/",
        "display": "standalone",
        "orientation": "portrait-primary",
        "background_color": BACKGROUND_COLOR,
        "theme_color": BACKGROUND_COLOR,
        "lang": "es",
        "categories": ["food", "restaurants", "shopping"],
        "icons": [
            {
                "src": png_data_url(icons[192]),
                "sizes": "192x192",
                "type": "image/png",
                "purpose": "any",
            },
            {
                "src": png_data_url(icons[512]),
                "sizes": "512x512",
                "type": "image/png",
                "purpose": "maskable",
            },
        ],
    }
    return manifest, icons[192]


class ManifestService:
    """Keeps the generated manifest in step with the logo document.

    While started, the logo subscription rebuilds the manifest on every
    change. Without a subscription (e.g. a Lambda container, which runs no
    lifespan) each read compares the stored logo with the one last built
    and rebuilds when they differ.
    """

    def __init__(self, site_service: SiteService, settings: StorefrontSettings) -> None:
        """Initialize the ManifestService.

        Args:
            site_service: Source of the logo document
            settings: App name and description
        """
        self.site_service = site_service
        self.settings = settings
        self._built: tuple[dict[str, Any], bytes] | None = None
        self._built_logo: LogoData | None = None
        self._subscription: Subscription | None = None

    def start(self) -> None:
        """Follow the logo and build the manifest for its current value."""
        if self._subscription is None:
            self._subscription = self.site_service.subscribe_to_logo(self._on_logo)

    def stop(self) -> None:
        """Stop following the logo."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _rebuild(self, logo: LogoData) -> tuple[dict[str, Any], bytes]:
        self._built = build_manifest(logo, self.settings)
        self._built_logo = logo
        logger.info(f"Manifest regenerated for logo in {logo.mode.value} mode")
        return self._built

    def _on_logo(self, logo: LogoData) -> None:
        self._rebuild(logo)

    def _current(self) -> tuple[dict[str, Any], bytes]:
        if self._built is not None and self._subscription is not None:
            return self._built

        logo = self.site_service.get_logo()
        if self._built is None or logo != self._built_logo:
            return self._rebuild(logo)
        return self._built

    @property
    def manifest(self) -> dict[str, Any]:
        """Current manifest."""
        return self._current()[0]

    @property
    def touch_icon(self) -> bytes:
        """Current 192px PNG icon."""
        return self._current()[1]
