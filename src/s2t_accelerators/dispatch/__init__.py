"""Operation dispatch: name lookup, execution and uniform result envelopes."""

from .dispatcher import CallResult, Dispatcher

__all__ = ["CallResult", "Dispatcher"]
