"""Service-worker script for offline delivery of the storefront shell."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from zequi_storefront.models.settings_models import StorefrontSettings

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
WORKER_TEMPLATE = "sw.js.j2"
WORKER_MEDIA_TYPE = "application/javascript"

# Live data is never cached
NETWORK_ONLY_PREFIXES = ("/api/", "/health")
SHELL_PATH = "/index.html"

# Regenerated from the logo; fetched fresh when online, cached copy offline
NETWORK_FIRST_PATHS = ("/manifest.webmanifest", "/apple-touch-icon.png")


def template_environment() -> Environment:
    """Jinja2 environment over the package templates."""
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        undefined=StrictUndefined,
        autoescape=False,
        keep_trailing_newline=True,
    )


class OfflineCacheWorker:
    """Renders the service-worker script.

    The worker pre-caches the static assets under a single versioned cache
    name and serves them cache-first. The generated manifest and touch icon
    go to the network first so a new logo shows up, falling back to their
    cached copies offline. API traffic always goes to the network, failed
    navigations fall back to the cached shell, and activation deletes every
    other cache version.
    """

    def __init__(self, settings: StorefrontSettings) -> None:
        """Initialize the worker renderer.

        Args:
            settings: Source of the cache name and static asset list
        """
        self.cache_name = settings.cache_name
        self.static_assets = list(settings.static_assets)
        if SHELL_PATH not in self.static_assets:
            self.static_assets.append(SHELL_PATH)
        self._template = template_environment().get_template(WORKER_TEMPLATE)
        self._script: str | None = None

    def render(self) -> str:
        """The worker script (rendered once, then reused)."""
        if self._script is None:
            self._script = self._template.render(
                cache_name=self.cache_name,
                static_assets=self.static_assets,
                network_only_prefixes=list(NETWORK_ONLY_PREFIXES),
                network_first_paths=list(NETWORK_FIRST_PATHS),
                shell_path=SHELL_PATH,
            )
        return self._script
