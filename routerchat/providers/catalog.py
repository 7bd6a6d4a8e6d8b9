"""Static catalog of backends and the models offered for each."""

from __future__ import annotations

from dataclasses import dataclass

from routerchat.models import Backend

NAMESPACE_SEPARATOR = "/"


@dataclass(frozen=True)
class BackendInfo:
    """Display metadata for a backend."""

    backend: Backend
    display_name: str
    credential_label: str
    models: tuple[str, ...]

    @property
    def default_model(self) -> str:
        return self.models[0]


CATALOG: dict[Backend, BackendInfo] = {
    Backend.ANTHROPIC_COMPLETE: BackendInfo(
        backend=Backend.ANTHROPIC_COMPLETE,
        display_name="Anthropic",
        credential_label="Anthropic API Key",
        models=("claude-2", "claude-instant-1"),
    ),
    Backend.ANTHROPIC_MESSAGES: BackendInfo(
        backend=Backend.ANTHROPIC_MESSAGES,
        display_name="Anthropic Messages",
        credential_label="Anthropic API Key",
        models=(
            "claude-3-opus-20240229",
            "claude-3-sonnet-20240229",
            "claude-3-haiku-20240307",
        ),
    ),
    Backend.OPENROUTER: BackendInfo(
        backend=Backend.OPENROUTER,
        display_name="OpenRouter",
        credential_label="OpenRouter API Key",
        models=(
            # OpenAI models via OpenRouter
            "openai/gpt-4o",
            "openai/gpt-4o-mini",
            "openai/o3-mini",
            "openai/gpt-4-turbo-preview",
            "openai/gpt-3.5-turbo",
            # Anthropic models via OpenRouter
            "anthropic/claude-3-opus",
            "anthropic/claude-3.5-sonnet",
            "anthropic/claude-3.7-sonnet",
            # Google models
            "google/gemini-2.0-flash-001",
            "google/gemma-3-12b-it:free",
            # Meta models
            "meta-llama/llama-4-scout:free",
            "meta-llama/llama-4-maverick:free",
            # Other models
            "deepseek/deepseek-r1:free",
            "deepseek/deepseek-chat:free",
            "qwen/qwq-32b:free",
            "x-ai/grok-3-mini-beta",
        ),
    ),
}


def display_name(backend: Backend) -> str:
    return CATALOG[backend].display_name


def is_namespaced(model: str) -> bool:
    """True when a model id is qualified by an aggregator vendor prefix."""
    return NAMESPACE_SEPARATOR in model


def display_model_name(model: str) -> str:
    """Short model label: ``openai/gpt-4o`` becomes ``gpt-4o``."""
    if is_namespaced(model):
        _, _, name = model.partition(NAMESPACE_SEPARATOR)
        if name:
            return name
    return model
