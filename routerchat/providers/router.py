"""Chooses the backend codec that must serve a request."""

from __future__ import annotations

from typing import Protocol

from routerchat.core import ConfigurationError, get_logger
from routerchat.models import Backend
from routerchat.providers.base import ProviderCodec
from routerchat.providers.catalog import display_name, is_namespaced

logger = get_logger(__name__)

AGGREGATOR_BACKEND = Backend.OPENROUTER


class CodecSource(Protocol):
    def get(self, backend: Backend) -> ProviderCodec | None: ...


def resolve_backend(selected: Backend, model: str) -> Backend:
    """
    Backend that can serve ``model``.

    Namespaced ids such as ``vendor/model`` only exist on the aggregator, so
    they override the selected backend.
    """
    if is_namespaced(model):
        return AGGREGATOR_BACKEND
    return selected


class ProviderRouter:
    """Resolves a codec for every send, evaluating the override each time."""

    def __init__(self, registry: CodecSource):
        self.registry = registry

    def route(self, selected: Backend, model: str) -> ProviderCodec:
        backend = resolve_backend(selected, model)
        if backend != selected:
            logger.debug(
                "Namespaced model routed to aggregator",
                data={"selected": selected.value, "model": model},
            )
        codec = self.registry.get(backend)
        if codec is None:
            raise ConfigurationError(
                display_name(backend), details={"backend": backend.value}
            )
        return codec
