"""Provider registry: builds backend codecs from stored credentials."""

from __future__ import annotations

from typing import Any

import httpx

from routerchat.config import Settings
from routerchat.core import get_logger
from routerchat.models import Backend
from routerchat.providers.base import ProviderCodec
from routerchat.providers.catalog import CATALOG
from routerchat.providers.client import ProviderClient
from routerchat.providers.wire import WIRE_FORMATS
from routerchat.services.ports import CredentialStore

logger = get_logger(__name__)


class ProviderRegistry:
    """
    Instantiate and cache one codec per configured backend.

    A codec exists only while the credential store holds a key for its
    backend. Storing a different key rebuilds the codec on next lookup.
    """

    def __init__(
        self,
        settings: Settings,
        credentials: CredentialStore,
        transport_overrides: dict[Backend, httpx.AsyncBaseTransport] | None = None,
    ):
        self.settings = settings
        self.credentials = credentials
        self._transport_overrides = transport_overrides or {}
        self._clients: dict[Backend, tuple[str, ProviderClient]] = {}
        self._retired: list[ProviderClient] = []

    def _transport(self, backend: Backend) -> httpx.AsyncBaseTransport | None:
        return self._transport_overrides.get(backend)

    def get(self, backend: Backend) -> ProviderCodec | None:
        """Return the codec for ``backend``, or ``None`` without a credential."""
        if not self.credentials.exists(backend):
            self._retire(backend)
            return None

        secret = self.credentials.get(backend)
        cached = self._clients.get(backend)
        if cached is not None and cached[0] == secret:
            return cached[1]

        self._retire(backend)
        provider = ProviderClient(
            WIRE_FORMATS[backend],
            api_key=secret,
            settings=self.settings,
            transport=self._transport(backend),
        )
        self._clients[backend] = (secret, provider)
        logger.info("Provider client created", data={"backend": backend.value})
        return provider

    def is_configured(self, backend: Backend) -> bool:
        return self.credentials.exists(backend)

    def invalidate(self, backend: Backend) -> None:
        """Forget the cached codec so the next lookup re-reads the credential."""
        self._retire(backend)

    def _retire(self, backend: Backend) -> None:
        cached = self._clients.pop(backend, None)
        if cached is not None:
            self._retired.append(cached[1])

    async def close_retired(self) -> int:
        """
        Close replaced clients that no request is using any more.

        Clients still serving a turn stay retired until a later call.
        Returns the number of clients closed.
        """
        idle = [provider for provider in self._retired if provider.in_flight == 0]
        self._retired = [provider for provider in self._retired if provider.in_flight > 0]
        for provider in idle:
            await self._close(provider)
        return len(idle)

    def list_providers(self) -> list[dict[str, Any]]:
        """Catalog entries with whether a credential is configured."""
        return [
            {
                "id": backend.value,
                "name": info.display_name,
                "credential_label": info.credential_label,
                "configured": self.is_configured(backend),
                "models": list(info.models),
                "default_model": info.default_model,
            }
            for backend, info in CATALOG.items()
        ]

    async def aclose(self) -> None:
        """Close all provider clients."""
        providers = [provider for _, provider in self._clients.values()] + self._retired
        self._clients.clear()
        self._retired = []
        for provider in providers:
            await self._close(provider)

    async def _close(self, provider: ProviderClient) -> None:
        try:
            await provider.aclose()
        except Exception:  # pragma: no cover
            logger.warning(
                "Error closing provider client",
                data={"backend": provider.backend.value},
            )
