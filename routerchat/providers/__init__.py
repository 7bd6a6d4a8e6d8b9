"""Backend codecs, routing, and streaming."""

from routerchat.providers.base import ChatMessage, ChatRequest, DeltaCallback, ProviderCodec
from routerchat.providers.catalog import CATALOG, BackendInfo, display_model_name
from routerchat.providers.client import ProviderClient
from routerchat.providers.registry import ProviderRegistry
from routerchat.providers.router import ProviderRouter, resolve_backend
from routerchat.providers.streaming import StreamDecoder
from routerchat.providers.wire import WIRE_FORMATS, WireFormat

__all__ = [
    "CATALOG",
    "BackendInfo",
    "ChatMessage",
    "ChatRequest",
    "DeltaCallback",
    "ProviderClient",
    "ProviderCodec",
    "ProviderRegistry",
    "ProviderRouter",
    "StreamDecoder",
    "WIRE_FORMATS",
    "WireFormat",
    "display_model_name",
    "resolve_backend",
]
