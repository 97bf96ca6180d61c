"""Site content service: about, contact and logo documents."""

import logging
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from zequi_storefront.models.menu_models import DEFAULT_CATEGORIES
from zequi_storefront.models.site_models import (
    DEFAULT_ABOUT,
    DEFAULT_CONTACT,
    DEFAULT_LOGO,
    AboutData,
    ContactData,
    LogoData,
    to_document,
)
from zequi_storefront.observability import traced
from zequi_storefront.repositories.menu_repositories import SiteDocumentRepository
from zequi_storefront.services.errors import StorageError
from zequi_storefront.services.menu_service import CATEGORIES_DOC
from zequi_storefront.services.subscription_hub import (
    SnapshotCallback,
    Subscription,
    SubscriptionHub,
)

logger = logging.getLogger(__name__)

ABOUT_TOPIC = "about"
CONTACT_TOPIC = "contact"
LOGO_TOPIC = "logo"

ABOUT_DOC = "siteConfig/about"
CONTACT_DOC = "siteConfig/contact"
LOGO_DOC = "siteConfig/logo"

ModelT = TypeVar("ModelT", bound=BaseModel)


class SiteService:
    """Service for the editable site content.

    Readers always get a document: the stored one when present and valid,
    the hardcoded default otherwise.
    """

    def __init__(self, document_repository: SiteDocumentRepository, hub: SubscriptionHub) -> None:
        """Initialize the SiteService.

        Args:
            document_repository: Repository holding the site documents
            hub: Subscription hub to publish changes to
        """
        self.document_repository = document_repository
        self.hub = hub

        hub.register_topic(ABOUT_TOPIC, self.get_about)
        hub.register_topic(CONTACT_TOPIC, self.get_contact)
        hub.register_topic(LOGO_TOPIC, self.get_logo)

    def _load(self, path: str, model: type[ModelT], default: ModelT) -> ModelT:
        document = self.document_repository.get_document(path)
        if document is None:
            return default

        try:
            return model.model_validate(document)
        except ValidationError as e:
            logger.warning(f"Stored document {path} is invalid, using default: {e}")
            return default

    def get_about(self) -> AboutData:
        """Current about section content."""
        return self._load(ABOUT_DOC, AboutData, DEFAULT_ABOUT)

    def get_contact(self) -> ContactData:
        """Current contact section content."""
        return self._load(CONTACT_DOC, ContactData, DEFAULT_CONTACT)

    def get_logo(self) -> LogoData:
        """Current brand mark."""
        return self._load(LOGO_DOC, LogoData, DEFAULT_LOGO)

    def subscribe_to_about(self, callback: SnapshotCallback) -> Subscription:
        """Follow the about section."""
        return self.hub.subscribe(ABOUT_TOPIC, callback)

    def subscribe_to_contact(self, callback: SnapshotCallback) -> Subscription:
        """Follow the contact section."""
        return self.hub.subscribe(CONTACT_TOPIC, callback)

    def subscribe_to_logo(self, callback: SnapshotCallback) -> Subscription:
        """Follow the brand mark."""
        return self.hub.subscribe(LOGO_TOPIC, callback)

    @traced("site.save_about")
    async def save_about(self, data: AboutData) -> AboutData:
        """Replace the about section."""
        self.document_repository.save_document(ABOUT_DOC, to_document(data))
        logger.info("About section saved")
        self.hub.publish(ABOUT_TOPIC)
        return data

    @traced("site.save_contact")
    async def save_contact(self, data: ContactData) -> ContactData:
        """Replace the contact section."""
        self.document_repository.save_document(CONTACT_DOC, to_document(data))
        logger.info("Contact section saved")
        self.hub.publish(CONTACT_TOPIC)
        return data

    @traced("site.save_logo")
    async def save_logo(self, data: LogoData) -> LogoData:
        """Replace the brand mark."""
        self.document_repository.save_document(LOGO_DOC, to_document(data))
        logger.info(f"Logo saved in {data.mode.value} mode")
        self.hub.publish(LOGO_TOPIC)
        return data

    async def initialize_defaults(self) -> list[str]:
        """Create every absent site document with its default content.

        Failures are logged and skipped; startup never fails because of them.

        Returns:
            list: Paths of the documents that were created
        """
        defaults = {
            ABOUT_DOC: to_document(DEFAULT_ABOUT),
            CONTACT_DOC: to_document(DEFAULT_CONTACT),
            LOGO_DOC: to_document(DEFAULT_LOGO),
            CATEGORIES_DOC: {"list": list(DEFAULT_CATEGORIES)},
        }

        created: list[str] = []
        for path, content in defaults.items():
            if self.document_repository.get_document(path) is not None:
                continue
            try:
                self.document_repository.save_document(path, content)
                created.append(path)
            except StorageError as e:
                logger.warning(f"Could not seed default document {path}: {e}")

        if created:
            logger.info(f"Seeded default documents: {', '.join(created)}")
        return created
