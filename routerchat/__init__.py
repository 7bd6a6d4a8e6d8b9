"""Multi-backend chat client routing between Anthropic and OpenRouter."""

__version__ = "0.1.0"
