"""Unit tests for SiteService."""

from typing import Any
from unittest.mock import MagicMock

import pytest

from zequi_storefront.models.site_models import (
    DEFAULT_ABOUT,
    DEFAULT_CONTACT,
    DEFAULT_LOGO,
    LogoData,
    LogoMode,
)
from zequi_storefront.repositories.menu_repositories import SiteDocumentRepository
from zequi_storefront.services.errors import StorageError
from zequi_storefront.services.site_service import (
    ABOUT_DOC,
    CONTACT_DOC,
    LOGO_DOC,
    SiteService,
)
from zequi_storefront.services.subscription_hub import SubscriptionHub


@pytest.mark.unit
class TestSiteService:
    """Test suite for SiteService."""

    @pytest.fixture
    def mock_document_repo(self) -> MagicMock:
        """Create a mock SiteDocumentRepository with nothing stored."""
        repo = MagicMock(spec=SiteDocumentRepository)
        repo.get_document.return_value = None
        return repo

    @pytest.fixture
    def site_service(self, mock_document_repo: MagicMock) -> SiteService:
        """Create a SiteService with a mocked repository."""
        return SiteService(document_repository=mock_document_repo, hub=SubscriptionHub())

    def test_defaults_when_absent(self, site_service: SiteService) -> None:
        """Test that absent documents read as the defaults."""
        assert site_service.get_about() == DEFAULT_ABOUT
        assert site_service.get_contact() == DEFAULT_CONTACT
        assert site_service.get_logo() == DEFAULT_LOGO

    def test_reads_stored_logo(self, site_service: SiteService, mock_document_repo: MagicMock) -> None:
        """Test that a stored document wins over the default."""
        mock_document_repo.get_document.return_value = {
            "mode": "image",
            "letter": "Z",
            "name": "ZEQUI",
            "tagline": "SMASH",
            "image_base64": "data:image/jpeg;base64,AAAA",
        }

        logo = site_service.get_logo()

        assert logo.mode == LogoMode.IMAGE
        assert logo.uses_image
        mock_document_repo.get_document.assert_called_with(LOGO_DOC)

    def test_invalid_stored_document_falls_back(
        self, site_service: SiteService, mock_document_repo: MagicMock
    ) -> None:
        """Test that a malformed document reads as the default."""
        mock_document_repo.get_document.return_value = {"title": 42}

        assert site_service.get_contact() == DEFAULT_CONTACT

    @pytest.mark.asyncio
    async def test_save_logo_publishes(
        self, site_service: SiteService, mock_document_repo: MagicMock
    ) -> None:
        """Test that saving the logo stores it and notifies subscribers."""
        snapshots: list[Any] = []
        site_service.subscribe_to_logo(snapshots.append)
        logo = LogoData(mode=LogoMode.TEXT, letter="Q", name="QUE", tagline="RICO")
        mock_document_repo.get_document.return_value = logo.model_dump(mode="json")

        saved = await site_service.save_logo(logo)

        assert saved == logo
        mock_document_repo.save_document.assert_called_once_with(
            LOGO_DOC,
            {"mode": "text", "letter": "Q", "name": "QUE", "tagline": "RICO", "image_base64": ""},
        )
        assert snapshots == [DEFAULT_LOGO, logo]

    @pytest.mark.asyncio
    async def test_save_about_failure(
        self, site_service: SiteService, mock_document_repo: MagicMock
    ) -> None:
        """Test that a failed write propagates and nothing is published."""
        snapshots: list[Any] = []
        site_service.subscribe_to_about(snapshots.append)
        mock_document_repo.save_document.side_effect = StorageError("down")

        with pytest.raises(StorageError):
            await site_service.save_about(DEFAULT_ABOUT)

        assert snapshots == [DEFAULT_ABOUT]

    @pytest.mark.asyncio
    async def test_save_contact(self, site_service: SiteService, mock_document_repo: MagicMock) -> None:
        """Test replacing the contact section."""
        contact = DEFAULT_CONTACT.model_copy(update={"phone": "+593 98 000 0000"})

        await site_service.save_contact(contact)

        path, data = mock_document_repo.save_document.call_args.args
        assert path == CONTACT_DOC
        assert data["phone"] == "+593 98 000 0000"

    @pytest.mark.asyncio
    async def test_initialize_defaults_creates_absent_documents(
        self, site_service: SiteService, mock_document_repo: MagicMock
    ) -> None:
        """Test seeding every missing document."""
        created = await site_service.initialize_defaults()

        assert created == [ABOUT_DOC, CONTACT_DOC, LOGO_DOC, "config/categories"]
        assert mock_document_repo.save_document.call_count == 4

    @pytest.mark.asyncio
    async def test_initialize_defaults_skips_existing_and_failures(
        self, site_service: SiteService, mock_document_repo: MagicMock
    ) -> None:
        """Test that existing documents are left alone and failures are skipped."""
        mock_document_repo.get_document.side_effect = lambda path: (
            {"mode": "text"} if path == LOGO_DOC else None
        )

        def save(path: str, _data: dict) -> None:
            if path == ABOUT_DOC:
                raise StorageError("down")

        mock_document_repo.save_document.side_effect = save

        created = await site_service.initialize_defaults()

        assert created == [CONTACT_DOC, "config/categories"]
