"""Session collaborators: who is acting, and where the selection is remembered."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from sqlalchemy import DateTime, String, Text, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Mapped, mapped_column

from graphdone.db import Base, make_engine, make_session_factory

from .interfaces import ISelectionStore, ISessionProvider
from .schemas import Actor

logger = logging.getLogger(__name__)

CURRENT_GRAPH_KEY = "currentGraphId"


class StaticSessionProvider(ISessionProvider):
    """Session provider with a fixed actor (CLI use and tests)."""

    def __init__(self, actor: Optional[Actor] = None):
        self.actor = actor

    @classmethod
    def from_settings(cls, settings) -> StaticSessionProvider:
        if not settings.user_id:
            return cls(None)
        return cls(Actor(user_id=settings.user_id, team_id=settings.team_id))

    def get_actor(self) -> Optional[Actor]:
        return self.actor


class MemorySelectionStore(ISelectionStore):
    def __init__(self):
        self.values: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)


class SessionValue(Base):
    __tablename__ = "session_values"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc)
    )


class SqlSelectionStore(ISelectionStore):
    """Key/value persistence in the local SQLite database.

    Storage failures are logged and otherwise ignored: losing the remembered
    selection only means the first graph is selected on the next start.
    """

    def __init__(self, engine: Optional[Engine] = None):
        self.engine = engine or make_engine()
        Base.metadata.create_all(bind=self.engine, tables=[SessionValue.__table__])
        self.SessionLocal = make_session_factory(self.engine)

    def get(self, key: str) -> Optional[str]:
        try:
            with self.SessionLocal() as db:
                row = db.scalars(select(SessionValue).where(SessionValue.key == key)).first()
                return row.value if row else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to read session value {key}: {e}")
            return None

    def set(self, key: str, value: str) -> None:
        try:
            with self.SessionLocal() as db:
                row = db.get(SessionValue, key)
                if row is None:
                    db.add(SessionValue(key=key, value=value))
                else:
                    row.value = value
                    row.updated_at = datetime.now(timezone.utc)
                db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to persist session value {key}: {e}")

    def delete(self, key: str) -> None:
        try:
            with self.SessionLocal() as db:
                row = db.get(SessionValue, key)
                if row is not None:
                    db.delete(row)
                    db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete session value {key}: {e}")


__all__ = [
    "CURRENT_GRAPH_KEY",
    "MemorySelectionStore",
    "SessionValue",
    "SqlSelectionStore",
    "StaticSessionProvider",
]
