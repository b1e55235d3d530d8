from abc import ABC, abstractmethod
from typing import List, Optional

from graphdone.core.schemas import Actor, GraphRecord

# Abstract Interfaces

class IGraphService(ABC):
    """Remote graph service. Implementations raise RemoteServiceError on failure."""

    @abstractmethod
    async def list_graphs(self, team_id: Optional[str] = None) -> List[GraphRecord]: ...

    @abstractmethod
    async def create_graph(self, payload: dict) -> GraphRecord:
        """Create from a camelCase payload (GraphRecord minus id/timestamps)."""
        ...

    @abstractmethod
    async def update_graph(self, graph_id: str, changes: dict) -> GraphRecord:
        """Apply a camelCase partial update and return the canonical record."""
        ...

    @abstractmethod
    async def delete_graph(self, graph_id: str) -> int: ...


class ISessionProvider(ABC):
    @abstractmethod
    def get_actor(self) -> Optional[Actor]:
        """Current user and team, or None when nobody is signed in."""
        ...


class ISelectionStore(ABC):
    """Small key/value persistence used to restore the selection on reload."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]: ...

    @abstractmethod
    def set(self, key: str, value: str) -> None: ...

    @abstractmethod
    def delete(self, key: str) -> None: ...
