"""I/O layer: the outbound accelerator API client."""

from .client import API_KEY_HEADER, RemoteCaller, RemoteClient

__all__ = ["API_KEY_HEADER", "RemoteCaller", "RemoteClient"]
