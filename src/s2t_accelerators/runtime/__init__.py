"""Runtime layer: observability and process lifecycle."""

from .shutdown import CloseOutcome, GracefulServer, ShutdownCoordinator

__all__ = ["CloseOutcome", "GracefulServer", "ShutdownCoordinator"]
