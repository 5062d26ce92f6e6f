from .base import EventSource, EventSourceError
from .local_file import LocalFileEventSource

__all__ = ["EventSource", "EventSourceError", "LocalFileEventSource"]
