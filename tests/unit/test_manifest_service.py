"""Unit tests for the generated app manifest."""

import base64
from io import BytesIO
from unittest.mock import MagicMock

import pytest
from PIL import Image

from zequi_storefront.models.settings_models import StorefrontSettings
from zequi_storefront.models.site_models import DEFAULT_LOGO, LogoData, LogoMode
from zequi_storefront.repositories.menu_repositories import SiteDocumentRepository
from zequi_storefront.services.errors import ImageProcessingError
from zequi_storefront.services.manifest_service import (
    ManifestService,
    build_manifest,
    decode_data_url,
    render_icon,
)
from zequi_storefront.services.site_service import SiteService
from zequi_storefront.services.subscription_hub import SubscriptionHub


def jpeg_data_url(color: tuple[int, int, int]) -> str:
    """A small solid JPEG as an inline data URL."""
    buffer = BytesIO()
    Image.new("RGB", (64, 64), color).save(buffer, format="JPEG")
    return "data:image/jpeg;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


def open_png(png: bytes) -> Image.Image:
    """Open PNG bytes."""
    return Image.open(BytesIO(png))


@pytest.mark.unit
class TestRenderIcon:
    """Tests for icon rendering."""

    def test_text_icon(self) -> None:
        """Test the letter badge size and format."""
        icon = open_png(render_icon(DEFAULT_LOGO, 192))

        assert icon.format == "PNG"
        assert icon.size == (192, 192)
        # Badge disc in the middle, black corners
        assert icon.convert("RGB").getpixel((0, 0)) == (5, 5, 5)

    def test_image_icon(self) -> None:
        """Test that an uploaded logo is used and clipped to a circle."""
        logo = LogoData(mode=LogoMode.IMAGE, image_base64=jpeg_data_url((0, 200, 0)))

        icon = open_png(render_icon(logo, 512)).convert("RGB")

        assert icon.size == (512, 512)
        r, g, b = icon.getpixel((256, 256))
        assert g > 150 and r < 60
        assert icon.getpixel((0, 0)) == (5, 5, 5)

    def test_broken_image_falls_back_to_letter(self) -> None:
        """Test that an undecodable stored logo still yields an icon."""
        logo = LogoData(mode=LogoMode.IMAGE, image_base64="data:image/jpeg;base64,bm9wZQ==")

        icon = open_png(render_icon(logo, 192))

        assert icon.size == (192, 192)

    def test_decode_data_url_rejects_bad_base64(self) -> None:
        """Test that invalid base64 raises ImageProcessingError."""
        with pytest.raises(ImageProcessingError):
            decode_data_url("data:image/png;base64,***")


@pytest.mark.unit
class TestBuildManifest:
    """Tests for build_manifest."""

    def test_manifest_fields(self, settings: StorefrontSettings) -> None:
        """Test names, colors and both icon sizes."""
        manifest, touch_icon = build_manifest(DEFAULT_LOGO, settings)

        assert manifest["name"] == "ZEQUI SMASH BURGERS"
        assert manifest["short_name"] == "ZEQUI"
        assert manifest["display"] == "standalone"
        assert manifest["theme_color"] == "#050505"
        assert [icon["sizes"] for icon in manifest["icons"]] == ["192x192", "512x512"]
        assert manifest["icons"][0]["src"].startswith("data:image/png;base64,")
        assert open_png(touch_icon).size == (192, 192)


@pytest.mark.unit
class TestManifestService:
    """Test suite for ManifestService."""

    @pytest.fixture
    def mock_document_repo(self) -> MagicMock:
        """Create a mock SiteDocumentRepository with nothing stored."""
        repo = MagicMock(spec=SiteDocumentRepository)
        repo.get_document.return_value = None
        return repo

    @pytest.fixture
    def site_service(self, mock_document_repo: MagicMock) -> SiteService:
        """Create a SiteService over the mocked repository."""
        return SiteService(document_repository=mock_document_repo, hub=SubscriptionHub())

    def test_builds_lazily_without_start(
        self, site_service: SiteService, settings: StorefrontSettings
    ) -> None:
        """Test that the manifest is available before start is called."""
        service = ManifestService(site_service=site_service, settings=settings)

        assert service.manifest["short_name"] == "ZEQUI"
        assert open_png(service.touch_icon).size == (192, 192)

    @pytest.mark.asyncio
    async def test_regenerates_when_logo_changes(
        self,
        site_service: SiteService,
        mock_document_repo: MagicMock,
        settings: StorefrontSettings,
    ) -> None:
        """Test that saving a new logo rebuilds the icons."""
        service = ManifestService(site_service=site_service, settings=settings)
        service.start()
        before = service.touch_icon

        logo = LogoData(mode=LogoMode.IMAGE, image_base64=jpeg_data_url((0, 0, 255)))
        mock_document_repo.get_document.return_value = logo.model_dump(mode="json")
        await site_service.save_logo(logo)

        assert service.touch_icon != before
        service.stop()
        assert site_service.hub.subscriber_count("logo") == 0

    def test_follows_stored_logo_without_start(
        self,
        site_service: SiteService,
        mock_document_repo: MagicMock,
        settings: StorefrontSettings,
    ) -> None:
        """Test that a logo saved by another process still reaches the icon."""
        service = ManifestService(site_service=site_service, settings=settings)
        before = service.touch_icon
        manifest = service.manifest

        assert service.manifest is manifest

        logo = LogoData(mode=LogoMode.IMAGE, image_base64=jpeg_data_url((0, 0, 255)))
        mock_document_repo.get_document.return_value = logo.model_dump(mode="json")

        assert service.touch_icon != before
        assert service.manifest is not manifest

    def test_started_service_serves_from_subscription(
        self,
        site_service: SiteService,
        mock_document_repo: MagicMock,
        settings: StorefrontSettings,
    ) -> None:
        """Test that reads while subscribed do not go back to the store."""
        service = ManifestService(site_service=site_service, settings=settings)
        service.start()
        reads = mock_document_repo.get_document.call_count

        _ = service.manifest
        _ = service.touch_icon

        assert mock_document_repo.get_document.call_count == reads
        service.stop()
