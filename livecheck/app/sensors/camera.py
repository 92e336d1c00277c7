"""Camera capture loop feeding face observations to the session manager."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, List, Optional, Tuple

from ..liveness.observation import FaceObservation

logger = logging.getLogger(__name__)

try:  # pragma: no cover - optional dependency
    import cv2

    from .face_detector import MediaPipeFaceDetector
except Exception:  # noqa: BLE001 - broad to avoid hardware import failures during dev
    cv2 = None
    MediaPipeFaceDetector = None

FacesCallback = Callable[[List[FaceObservation]], Awaitable[None]]


class CameraService:
    """Captures frames, runs face detection off the loop and emits face lists."""

    def __init__(
        self,
        *,
        enable_hardware: bool = True,
        camera_index: int = 0,
        viewport_width: float = 390.0,
        mirror: bool = True,
        confidence: float = 0.6,
        min_interval_ms: int = 125,
    ) -> None:
        self.enable_hardware = enable_hardware and MediaPipeFaceDetector is not None
        self.camera_index = camera_index
        self.viewport_width = viewport_width
        self.mirror = mirror
        self.confidence = confidence
        self.min_interval_ms = min_interval_ms

        self._capture: Optional[Any] = None
        self._detector: Optional[MediaPipeFaceDetector] = None
        self._callbacks: list[FacesCallback] = []
        self._lock = asyncio.Lock()
        self._loop_task: Optional[asyncio.Task[None]] = None
        self._stop_event = asyncio.Event()

    def register_callback(self, callback: FacesCallback) -> None:
        self._callbacks.append(callback)

    async def start(self) -> None:
        if self._loop_task:
            return
        if not self.enable_hardware:
            logger.warning("Camera hardware disabled – frames must be submitted over the API")
            return
        logger.info("Opening camera index=%s interval_ms=%s", self.camera_index, self.min_interval_ms)
        self._capture, self._detector = self._open_devices()
        self._stop_event.clear()
        self._loop_task = asyncio.create_task(self._capture_loop(), name="camera-capture-loop")

    async def stop(self) -> None:
        if not self._loop_task:
            return
        self._stop_event.set()
        try:
            await self._loop_task
        finally:
            self._loop_task = None
            if self._detector:
                self._detector.close()
                self._detector = None
            if self._capture is not None:
                self._capture.release()
                self._capture = None

    def _open_devices(self) -> Tuple[Any, Any]:
        capture = cv2.VideoCapture(self.camera_index)
        if not capture.isOpened():
            capture.release()
            raise RuntimeError(f"camera_unavailable index={self.camera_index}")
        detector = MediaPipeFaceDetector(
            viewport_width=self.viewport_width,
            mirror=self.mirror,
            confidence=self.confidence,
        )
        return capture, detector

    async def _capture_loop(self) -> None:
        try:
            while not self._stop_event.is_set():
                faces = await self._run_detection()
                if faces is not None:
                    await self._emit(faces)
                await asyncio.sleep(self.min_interval_ms / 1000)
        except asyncio.CancelledError:
            raise
        except AssertionError:
            logger.critical("Camera capture loop hit an unknown challenge state", exc_info=True)
            raise
        except Exception:  # pragma: no cover - defensive guard
            logger.exception("Camera capture loop crashed")
        finally:
            self._stop_event.clear()
            logger.info("Camera capture loop stopped")

    async def _run_detection(self) -> Optional[List[FaceObservation]]:
        async with self._lock:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, self._capture_and_detect)

    def _capture_and_detect(self) -> Optional[List[FaceObservation]]:
        if self._capture is None or self._detector is None:
            return None
        ok, frame = self._capture.read()
        if not ok:
            logger.warning("Camera frame grab failed")
            return None
        return self._detector.detect(frame)

    async def _emit(self, faces: List[FaceObservation]) -> None:
        for callback in self._callbacks:
            try:
                await callback(faces)
            except AssertionError:
                raise
            except Exception:  # noqa: BLE001
                logger.exception("Camera callback failed")


__all__ = ["CameraService"]
