"""
Session Store for CoachRoom

Persists interview session records:
- create on setup completion
- append transcript turns while the live room is open
- mark ended / analyzed
- read (with one retrying read used by the debrief generator)

Backends:
- FirestoreSessionStore: managed document database (production)
- InMemorySessionStore: process-local dict (development, tests)
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

import firebase_admin
from firebase_admin import credentials, firestore_async
from google.cloud import firestore

from coachroom.config.settings import get_settings
from coachroom.models.session import (
    Session,
    SessionConfig,
    SessionStatus,
    Speaker,
    TranscriptTurn,
)

logger = logging.getLogger(__name__)

SESSIONS_COLLECTION = "sessions"


class SessionNotFoundError(Exception):
    """Raised when a session id does not exist."""
    pass


class SessionStore(ABC):
    """Interface shared by all session backends."""

    @abstractmethod
    async def create_session(self, user_id: str, config: SessionConfig) -> str:
        """Create an active session and return its id."""

    @abstractmethod
    async def get_session(self, session_id: str) -> Session | None:
        """Read a session, None when missing."""

    @abstractmethod
    async def _append_turn(self, session_id: str, turn: TranscriptTurn) -> None:
        ...

    @abstractmethod
    async def _update(self, session_id: str, fields: dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def list_sessions(self, user_id: str, limit: int = 20) -> list[Session]:
        """List a user's sessions, newest first."""

    async def append_transcript(self, session_id: str, role: Speaker, text: str) -> None:
        """
        Append a transcript turn.

        Failures are logged and swallowed so live logging never
        interrupts the interview.
        """
        try:
            await self._append_turn(session_id, TranscriptTurn(role=role, text=text))
        except Exception as e:
            logger.error(f"Error logging transcript for {session_id}: {e}")

    async def end_session(self, session_id: str) -> None:
        """Mark a session completed."""
        try:
            await self._update(session_id, {
                "status": SessionStatus.COMPLETED.value,
                "end_time": self._now(),
            })
        except Exception as e:
            logger.error(f"Error ending session {session_id}: {e}")

    async def save_debrief(self, session_id: str, debrief: dict[str, Any]) -> None:
        """Store (or replace) the debrief and mark the session analyzed."""
        await self._update(session_id, {
            "debrief": debrief,
            "status": SessionStatus.ANALYZED.value,
        })

    async def get_session_with_retry(
        self,
        session_id: str,
        attempts: int = 3,
        delay_seconds: float = 1.0,
    ) -> Session:
        """
        Read a session, retrying transient failures with a fixed delay.

        Raises:
            SessionNotFoundError: The session does not exist
        """
        attempts = max(1, attempts)
        last_error: Exception | None = None
        for attempt in range(attempts):
            try:
                session = await self.get_session(session_id)
                if session is None:
                    raise SessionNotFoundError(f"Session not found: {session_id}")
                return session
            except SessionNotFoundError:
                raise
            except Exception as e:
                last_error = e
                logger.warning(
                    f"Session read failed (attempt {attempt + 1}/{attempts}) for {session_id}: {e}"
                )
                if attempt < attempts - 1:
                    await asyncio.sleep(delay_seconds)

        raise last_error

    def _now(self) -> Any:
        return datetime.now(timezone.utc)


class InMemorySessionStore(SessionStore):
    """Session storage in a process-local dict."""

    def __init__(self):
        self._sessions: dict[str, Session] = {}

    async def create_session(self, user_id: str, config: SessionConfig) -> str:
        session = Session(
            id=str(uuid4()),
            user_id=user_id,
            config=config,
            start_time=self._now(),
        )
        self._sessions[session.id] = session
        logger.info(f"Created interview session: {session.id}")
        return session.id

    async def get_session(self, session_id: str) -> Session | None:
        session = self._sessions.get(session_id)
        return session.model_copy(deep=True) if session else None

    async def _append_turn(self, session_id: str, turn: TranscriptTurn) -> None:
        session = self._require(session_id)
        session.transcript.append(turn)

    async def _update(self, session_id: str, fields: dict[str, Any]) -> None:
        session = self._require(session_id)
        self._sessions[session_id] = Session.model_validate(
            {**session.model_dump(), **fields}
        )

    async def list_sessions(self, user_id: str, limit: int = 20) -> list[Session]:
        sessions = [s for s in self._sessions.values() if s.user_id == user_id]
        sessions.sort(key=lambda s: s.start_time or datetime.min.replace(tzinfo=timezone.utc), reverse=True)
        return [s.model_copy(deep=True) for s in sessions[:limit]]

    def _require(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")
        return session


class FirestoreSessionStore(SessionStore):
    """Session storage in the `sessions` Firestore collection."""

    def __init__(self, db: Any = None):
        self.settings = get_settings()
        self._db = db

    @property
    def db(self) -> Any:
        if self._db is None:
            self._db = firestore_async.client(app=get_firebase_app())
        return self._db

    def _collection(self):
        return self.db.collection(SESSIONS_COLLECTION)

    def _now(self) -> Any:
        return firestore.SERVER_TIMESTAMP

    async def create_session(self, user_id: str, config: SessionConfig) -> str:
        _, doc_ref = await self._collection().add({
            "userId": user_id,
            "startTime": firestore.SERVER_TIMESTAMP,
            "status": SessionStatus.ACTIVE.value,
            "config": config.model_dump(mode="json"),
            "transcript": [],
        })
        logger.info(f"Created interview session: {doc_ref.id}")
        return doc_ref.id

    async def get_session(self, session_id: str) -> Session | None:
        snapshot = await self._collection().document(session_id).get()
        if not snapshot.exists:
            return None
        return self._to_session(snapshot.id, snapshot.to_dict())

    async def _append_turn(self, session_id: str, turn: TranscriptTurn) -> None:
        await self._collection().document(session_id).update({
            "transcript": firestore.ArrayUnion([turn.model_dump(mode="json")]),
        })

    async def _update(self, session_id: str, fields: dict[str, Any]) -> None:
        renamed = {
            {"end_time": "endTime", "start_time": "startTime"}.get(key, key): value
            for key, value in fields.items()
        }
        await self._collection().document(session_id).update(renamed)

    async def list_sessions(self, user_id: str, limit: int = 20) -> list[Session]:
        query = (
            self._collection()
            .where(filter=firestore.FieldFilter("userId", "==", user_id))
            .order_by("startTime", direction=firestore.Query.DESCENDING)
            .limit(limit)
        )
        sessions = []
        async for snapshot in query.stream():
            sessions.append(self._to_session(snapshot.id, snapshot.to_dict()))
        return sessions

    def _to_session(self, session_id: str, data: dict[str, Any]) -> Session:
        """Map a Firestore document onto the Session model."""
        return Session(
            id=session_id,
            user_id=data.get("userId", ""),
            config=SessionConfig.model_validate(data.get("config") or {}),
            status=data.get("status", SessionStatus.ACTIVE.value),
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
            transcript=data.get("transcript") or [],
            debrief=data.get("debrief"),
        )


def get_firebase_app() -> firebase_admin.App:
    """Initialize (once) and return the default Firebase app."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        settings = get_settings()
        cred = (
            credentials.Certificate(settings.firebase_credentials_path)
            if settings.firebase_credentials_path
            else credentials.ApplicationDefault()
        )
        options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
        logger.info("Initializing Firebase app")
        return firebase_admin.initialize_app(cred, options)
