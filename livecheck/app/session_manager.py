"""Session orchestration for the liveness controller."""
from __future__ import annotations

import asyncio
from asyncio import QueueEmpty
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .config import Settings, get_settings
from .liveness.observation import FaceObservation, single_face
from .liveness.session import LivenessMachine, LivenessSession
from .sensors.camera import CameraService
from .state import ControllerEvent, SessionPhase

logger = logging.getLogger(__name__)


class SessionNotActive(RuntimeError):
    """Raised when a frame arrives without an active liveness session."""


@dataclass
class SessionContext:
    session: LivenessSession
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    started_at: float = field(default_factory=time.time)
    frames: int = 0
    dropped_frames: int = 0


@dataclass
class FrameOutcome:
    accepted: bool
    snapshot: Dict[str, Any]


class SessionManager:
    """Serializes frames into the state machine and fans state out to UI clients."""

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        machine: Optional[LivenessMachine] = None,
        camera: Optional[CameraService] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.machine = machine or LivenessMachine.from_settings(self.settings)
        self._frame_lock = asyncio.Lock()
        self._ui_subscribers: List[asyncio.Queue[ControllerEvent]] = []
        self._current: Optional[SessionContext] = None

        self._camera = camera or CameraService(
            enable_hardware=self.settings.camera_enable_hardware,
            camera_index=self.settings.camera_index,
            viewport_width=self.settings.viewport_width,
            mirror=self.settings.camera_mirror,
            confidence=self.settings.mediapipe_confidence,
            min_interval_ms=self.settings.min_detection_interval_ms,
        )
        self._camera.register_callback(self._handle_camera_faces)

        self._close_task: Optional[asyncio.Task[None]] = None
        self._background_tasks: list[asyncio.Task[Any]] = []

    @property
    def phase(self) -> SessionPhase:
        if self._current is None:
            return SessionPhase.IDLE
        return self._current.session.phase

    @property
    def current(self) -> Optional[SessionContext]:
        return self._current

    async def start(self) -> None:
        logger.info("Starting session manager")
        await self._camera.start()
        self._background_tasks.append(asyncio.create_task(self._heartbeat_loop(), name="controller-heartbeat"))

    async def stop(self) -> None:
        logger.info("Stopping session manager")
        await self._camera.stop()
        self._cancel_close_task()
        for task in self._background_tasks:
            task.cancel()
        for task in self._background_tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._background_tasks.clear()

    def register_ui(self) -> asyncio.Queue[ControllerEvent]:
        queue: asyncio.Queue[ControllerEvent] = asyncio.Queue(maxsize=4)
        self._ui_subscribers.append(queue)
        return queue

    def unregister_ui(self, queue: asyncio.Queue[ControllerEvent]) -> None:
        if queue in self._ui_subscribers:
            self._ui_subscribers.remove(queue)

    def snapshot(self) -> Optional[Dict[str, Any]]:
        if self._current is None:
            return None
        data = self.machine.snapshot(self._current.session)
        data["session_id"] = self._current.session_id
        return data

    async def start_session(self) -> Dict[str, Any]:
        """Begin a fresh liveness attempt, replacing any active one."""

        self._cancel_close_task()
        session = self.machine.new_session(shuffle=self.settings.shuffle_challenges)
        self._current = SessionContext(session=session)
        logger.info(
            "Session %s started order=%s",
            self._current.session_id,
            [kind.value for kind in session.challenge_order],
        )
        snapshot = self.snapshot()
        await self._broadcast(ControllerEvent(type="state", data=snapshot, phase=self.phase))
        return snapshot

    async def cancel_session(self) -> None:
        if self._current is None:
            return
        logger.info("Session %s cancelled", self._current.session_id)
        self._cancel_close_task()
        await self._close_session(reason="cancelled")

    async def submit_faces(self, faces: Sequence[FaceObservation]) -> FrameOutcome:
        """Run one frame through the state machine.

        Frames arriving while a previous frame is still being handled are
        dropped, as are frames for an already completed session.
        """

        context = self._current
        if context is None:
            raise SessionNotActive("no_active_session")
        if self._frame_lock.locked():
            context.dropped_frames += 1
            logger.debug("Dropping frame for session %s; previous frame in flight", context.session_id)
            return FrameOutcome(accepted=False, snapshot=self.snapshot())

        async with self._frame_lock:
            previous = context.session
            if previous.complete:
                return FrameOutcome(accepted=False, snapshot=self.snapshot())

            context.frames += 1
            updated = self.machine.process(previous, single_face(faces))
            context.session = updated
            snapshot = self.snapshot()
            if self.machine.snapshot(updated) != self.machine.snapshot(previous):
                await self._broadcast(ControllerEvent(type="state", data=snapshot, phase=updated.phase))
            if updated.complete:
                logger.info(
                    "Session %s complete after %s frames (%s dropped)",
                    context.session_id,
                    context.frames,
                    context.dropped_frames,
                )
                await self._broadcast(
                    ControllerEvent(
                        type="complete",
                        data={"session_id": context.session_id, "passed": True},
                        phase=updated.phase,
                    )
                )
                self._schedule_close(context.session_id)
            return FrameOutcome(accepted=True, snapshot=snapshot)

    def _schedule_close(self, session_id: str) -> None:
        self._cancel_close_task()
        self._close_task = asyncio.create_task(self._close_after_delay(session_id), name="controller-session-close")

    def _cancel_close_task(self) -> None:
        if self._close_task and not self._close_task.done():
            self._close_task.cancel()
        self._close_task = None

    async def _close_after_delay(self, session_id: str) -> None:
        # leaves time for the final progress animation before tearing down
        await asyncio.sleep(self.settings.completion_delay_s)
        if self._current is not None and self._current.session_id == session_id:
            await self._close_session(reason="complete")

    async def _close_session(self, *, reason: str) -> None:
        session_id = self._current.session_id if self._current else None
        self._current = None
        await self._broadcast(
            ControllerEvent(
                type="state",
                data={"session_id": session_id, "reason": reason},
                phase=SessionPhase.IDLE,
            )
        )

    async def _handle_camera_faces(self, faces: List[FaceObservation]) -> None:
        if self._current is None:
            return
        await self.submit_faces(faces)

    async def _broadcast(self, event: ControllerEvent) -> None:
        logger.debug("Broadcasting event: %s", event)
        for queue in list(self._ui_subscribers):
            if queue.full():
                try:
                    queue.get_nowait()
                except QueueEmpty:
                    pass
            queue.put_nowait(event)

    async def _heartbeat_loop(self) -> None:
        try:
            while True:
                await asyncio.sleep(30)
                await self._broadcast(ControllerEvent(type="heartbeat", data={}, phase=self.phase))
        except asyncio.CancelledError:  # pragma: no cover - cooperative cancel
            raise


__all__ = ["FrameOutcome", "SessionContext", "SessionManager", "SessionNotActive"]
