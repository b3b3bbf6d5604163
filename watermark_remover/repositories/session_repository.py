from __future__ import annotations
from typing import Dict, List, Optional
import threading

from ..exceptions import SessionNotFoundError
from ..models.image_session import ImageSession


class SessionRepository:
    """
    In-memory store of ImageSession objects keyed by id, insertion ordered,
    with at most one "active" session. Nothing is persisted.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, ImageSession] = {}
        self._active_id: Optional[str] = None
        self._guard = threading.RLock()  # protects the dict, not the buffers

    def add(self, session: ImageSession) -> ImageSession:
        with self._guard:
            self._sessions[session.id] = session
            if self._active_id is None:
                self._active_id = session.id
            return session

    def get(self, image_id: str) -> ImageSession:
        with self._guard:
            try:
                return self._sessions[image_id]
            except KeyError:
                raise SessionNotFoundError(image_id) from None

    def list(self) -> List[ImageSession]:
        with self._guard:
            return list(self._sessions.values())

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, image_id: str) -> bool:
        return image_id in self._sessions

    # ---------- active pointer ----------
    def select(self, image_id: str) -> ImageSession:
        with self._guard:
            session = self.get(image_id)
            self._active_id = image_id
            return session

    def retrieve_active(self) -> Optional[ImageSession]:
        with self._guard:
            if self._active_id is None:
                return None
            return self._sessions.get(self._active_id)

    # ---------- removal ----------
    def remove(self, image_id: str) -> ImageSession:
        """
        Drop one session. If it was active, the first remaining one
        (or nothing) becomes active.
        """
        with self._guard:
            session = self._sessions.pop(image_id, None)
            if session is None:
                raise SessionNotFoundError(image_id)
            if self._active_id == image_id:
                self._active_id = next(iter(self._sessions), None)
            return session

    def clear(self) -> None:
        with self._guard:
            self._sessions.clear()
            self._active_id = None
