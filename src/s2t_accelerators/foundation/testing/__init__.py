"""Testing utilities: a recording fake for the remote client."""

from .fake import FakeRemote, Invocation

__all__ = ["FakeRemote", "Invocation"]
