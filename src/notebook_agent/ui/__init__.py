"""Turn events for front ends and the typed event bus that carries them."""

from .events import EventBus

__all__ = ["EventBus"]
