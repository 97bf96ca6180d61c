"""Site configuration documents (about, contact, logo) and their defaults.

The defaults are what the storefront shows whenever the stored document is
absent. They are also what ``SiteService.initialize_defaults`` writes on first
start.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class StatItem(BaseModel):
    """Headline number shown in the about section."""

    value: str
    label: str


class AboutData(BaseModel):
    """Content of the "about us" section."""

    badge: str
    title: str
    highlight: str
    paragraph1: str
    paragraph2: str
    values: list[str] = Field(default_factory=list)
    stats: list[StatItem] = Field(default_factory=list)
    image_url: str = ""
    image_caption: str = ""
    since: str = ""


class ContactData(BaseModel):
    """Content of the contact section and footer."""

    title: str
    highlight: str
    description: str
    instagram_handle: str
    instagram_url: str
    address1: str
    address2: str
    maps_url: str
    schedule_weekday: str
    schedule_weekend: str
    phone: str
    phone_note: str
    email1: str
    email2: str


class LogoMode(str, Enum):
    """How the brand mark is drawn."""

    TEXT = "text"
    IMAGE = "image"


class LogoData(BaseModel):
    """Brand mark: a letter badge with name and tagline, or an uploaded image."""

    mode: LogoMode = LogoMode.TEXT
    letter: str = Field(default="Z", max_length=2)
    name: str = ""
    tagline: str = ""
    image_base64: str = ""

    @property
    def uses_image(self) -> bool:
        """True when an uploaded image should replace the letter badge."""
        return self.mode == LogoMode.IMAGE and bool(self.image_base64)


DEFAULT_ABOUT = AboutData(
    badge="Nuestra Historia",
    title="Nacimos del amor",
    highlight="por la buena carne",
    paragraph1=(
        "Zequi Smash Burgers nació de una pasión genuina por las hamburguesas artesanales. "
        "Lo que comenzó como experimentos caseros se convirtió en una obsesión por la técnica "
        "smash: presionar la carne en plancha ardiente para crear esa costra crujiente y "
        "caramelizada que nos hace únicos."
    ),
    paragraph2=(
        "Cada hamburguesa es elaborada con carne 100% premium, ingredientes frescos "
        "seleccionados y salsas artesanales que hemos perfeccionado con el tiempo. "
        "No es solo comida, es una experiencia."
    ),
    values=["Artesanal", "Premium", "Pasión", "Calidad"],
    stats=[
        StatItem(value="10K+", label="Burgers servidas"),
        StatItem(value="4.9★", label="Calificación"),
        StatItem(value="100%", label="Carne premium"),
        StatItem(value="2023", label="Desde"),
    ],
    image_url="",
    image_caption="Nuestro proceso artesanal",
    since="Desde 2023",
)

DEFAULT_CONTACT = ContactData(
    title="Encuéntranos",
    highlight="Estamos cerca",
    description="¿Listo para la mejor smash burger de tu vida? Encuéntranos.",
    instagram_handle="@zequismashburgers",
    instagram_url="https://instagram.com/zequismashburgers",
    address1="Tu ciudad, Ecuador",
    address2="Barrio / Sector",
    maps_url="https://maps.google.com",
    schedule_weekday="Lun – Vie: 12:00 – 22:00",
    schedule_weekend="Sáb – Dom: 12:00 – 23:00",
    phone="+593 99 999 9999",
    phone_note="También por WhatsApp",
    email1="info@zequiburgers.com",
    email2="pedidos@zequiburgers.com",
)

DEFAULT_LOGO = LogoData(
    mode=LogoMode.TEXT,
    letter="Z",
    name="ZEQUI",
    tagline="SMASH BURGERS",
    image_base64="",
)


def to_document(data: BaseModel) -> dict[str, Any]:
    """Serialize a site document for storage (enums as plain values)."""
    return data.model_dump(mode="json")
