"""
Stream Session Store
====================

In-memory, TTL-bounded store for shared ASCII videos.

This module provides the StreamSessionStore class, the one piece of shared
mutable state in the service. It hands out opaque stream ids, serves
sessions to readers, and evicts stale sessions from a background task.

Design Rules:
    - A single lock guards the session map
    - Sessions are fully built before insertion (never half-visible)
    - Sessions are immutable; there is no update operation
    - Ids are never reused for the lifetime of the store
    - Nothing is persisted; a restart drops every session

Lifecycle:
    store = StreamSessionStore(ttl_seconds=3600, reap_interval_seconds=300)
    await store.start()     # starts the reaper task
    ...
    await store.stop()      # cancels the reaper task
"""

import asyncio
import logging
import math
import threading
import time
import uuid
from typing import Callable, Dict, Iterable, Optional, Set

from ascii_video.errors import NotFoundError, ValidationError
from ascii_video.models.frames import DEFAULT_TITLE, StreamSession


logger = logging.getLogger(__name__)


class StreamSessionStore:
    """
    Thread- and task-safe map of stream id -> StreamSession.

    Expiry is enforced twice: get() refuses sessions older than the TTL,
    and the reaper removes them from memory on its next tick.

    Attributes:
        ttl_seconds: Session lifetime
        reap_interval_seconds: Delay between reaper passes
        default_frame_rate: Used when a create request has no valid rate

    Example:
        store = StreamSessionStore()
        stream_id = store.create(["AB\\nCD"], frame_rate=24, title="t")
        store.get(stream_id).metadata()
        # {'title': 't', 'frameCount': 1, 'frameRate': 24}
    """

    def __init__(
        self,
        ttl_seconds: float = 3600.0,
        reap_interval_seconds: float = 300.0,
        default_frame_rate: float = 24.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the store.

        Args:
            ttl_seconds: Session lifetime in seconds. Must be > 0.
            reap_interval_seconds: Reaper period in seconds. Must be > 0.
            default_frame_rate: Fallback playback rate. Must be > 0.
            clock: Source of UNIX timestamps (injectable for tests)
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        if reap_interval_seconds <= 0:
            raise ValueError("reap_interval_seconds must be > 0")
        if default_frame_rate <= 0:
            raise ValueError("default_frame_rate must be > 0")

        self.ttl_seconds = ttl_seconds
        self.reap_interval_seconds = reap_interval_seconds
        self.default_frame_rate = default_frame_rate
        self._clock = clock

        self._lock = threading.Lock()
        self._sessions: Dict[str, StreamSession] = {}
        self._issued_ids: Set[str] = set()

        self._reaper_task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None

        self._created_count: int = 0
        self._reaped_count: int = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    @property
    def running(self) -> bool:
        """Whether the reaper task is active."""
        return self._reaper_task is not None and not self._reaper_task.done()

    # -------------------------------------------------------------------------
    # Session operations
    # -------------------------------------------------------------------------

    def create(
        self,
        frames: Iterable[str],
        frame_rate: Optional[float] = None,
        title: Optional[str] = None,
    ) -> str:
        """
        Store a new session.

        Args:
            frames: Text frames in playback order (must be non-empty)
            frame_rate: Playback rate; default_frame_rate if missing,
                non-finite or <= 0
            title: Display title; "ASCII Video" if missing or empty

        Returns:
            The new stream id

        Raises:
            ValidationError: If frames is missing or empty
        """
        if frames is None:
            raise ValidationError("Frames are required")

        frame_tuple = tuple(frames)
        if not frame_tuple:
            raise ValidationError("Frames are required")
        if not all(isinstance(frame, str) for frame in frame_tuple):
            raise ValidationError("Frames must be strings")

        if frame_rate is None or not math.isfinite(frame_rate) or frame_rate <= 0:
            frame_rate = self.default_frame_rate

        with self._lock:
            stream_id = uuid.uuid4().hex
            while stream_id in self._issued_ids:
                stream_id = uuid.uuid4().hex
            self._issued_ids.add(stream_id)

            session = StreamSession(
                id=stream_id,
                frames=frame_tuple,
                frame_rate=frame_rate,
                title=title or DEFAULT_TITLE,
                created_at=self._clock(),
            )
            self._sessions[stream_id] = session
            self._created_count += 1

        logger.info(
            f"Created stream {stream_id}: frames={session.frame_count}, "
            f"frame_rate={session.frame_rate}"
        )
        return stream_id

    def get(self, stream_id: str) -> StreamSession:
        """
        Look up a session.

        Args:
            stream_id: Id returned by create()

        Returns:
            The stored StreamSession

        Raises:
            NotFoundError: If the id is unknown or the session has expired
        """
        with self._lock:
            session = self._sessions.get(stream_id)

        if session is None or self._is_expired(session, self._clock()):
            raise NotFoundError(stream_id)

        return session

    def reap(self) -> int:
        """
        Remove every session older than the TTL.

        Returns:
            Number of sessions removed
        """
        now = self._clock()
        with self._lock:
            expired = [
                stream_id
                for stream_id, session in self._sessions.items()
                if self._is_expired(session, now)
            ]
            for stream_id in expired:
                del self._sessions[stream_id]
            self._reaped_count += len(expired)

        if expired:
            logger.info(f"Reaped {len(expired)} expired stream(s)")
        return len(expired)

    def _is_expired(self, session: StreamSession, now: float) -> bool:
        return now - session.created_at > self.ttl_seconds

    # -------------------------------------------------------------------------
    # Reaper lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Start the background reaper task (no-op if already running)."""
        if self.running:
            return

        self._stop_event = asyncio.Event()
        self._reaper_task = asyncio.create_task(
            self._reap_loop(),
            name="stream_reaper",
        )
        logger.info(
            f"Stream reaper started: ttl={self.ttl_seconds}s, "
            f"interval={self.reap_interval_seconds}s"
        )

    async def stop(self) -> None:
        """Stop the reaper task and wait for it to finish."""
        if self._reaper_task is None:
            return

        if self._stop_event is not None:
            self._stop_event.set()

        self._reaper_task.cancel()
        try:
            await self._reaper_task
        except asyncio.CancelledError:
            pass

        self._reaper_task = None
        logger.info("Stream reaper stopped")

    async def _reap_loop(self) -> None:
        while self._stop_event is not None and not self._stop_event.is_set():
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),
                    timeout=self.reap_interval_seconds,
                )
                break
            except asyncio.TimeoutError:
                pass

            try:
                self.reap()
            except Exception as e:
                logger.error(f"Reaper pass failed: {e}")

    # -------------------------------------------------------------------------
    # Observability
    # -------------------------------------------------------------------------

    def metrics(self) -> dict:
        """
        Get store metrics for observability.

        Returns:
            Dict with active, created and reaped counts
        """
        with self._lock:
            return {
                "active_streams": len(self._sessions),
                "streams_created": self._created_count,
                "streams_reaped": self._reaped_count,
                "reaper_running": self.running,
            }
