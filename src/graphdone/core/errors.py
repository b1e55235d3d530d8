"""Exceptions raised by the graph core."""

from typing import Dict, Optional


class GraphStoreError(Exception):
    """Base exception for graph core errors."""

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class GraphValidationError(GraphStoreError):
    """Raised before any remote call when an operation's input is rejected."""
    pass


class GraphNotFoundError(GraphStoreError):
    """Raised when an operation references an id absent from the local collection."""

    def __init__(self, graph_id: str, message: Optional[str] = None):
        super().__init__(message or f"Graph {graph_id} not found", {"graph_id": graph_id})
        self.graph_id = graph_id


class RemoteServiceError(GraphStoreError):
    """Raised by the transport adapter when the graph service call fails."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, {"operation": operation, "status_code": status_code})
        self.operation = operation
        self.status_code = status_code


__all__ = [
    "GraphStoreError",
    "GraphValidationError",
    "GraphNotFoundError",
    "RemoteServiceError",
]
