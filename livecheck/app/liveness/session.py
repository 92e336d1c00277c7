"""Liveness session state and the frame transition function."""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Dict, Optional, Sequence, Tuple

from ..state import SessionPhase
from .challenges import ChallengeCatalog, ChallengeKind, evaluate
from .framing import FramingStrategy, framing_from_settings
from .observation import FaceObservation
from .smoother import NOD_WINDOW_SIZE, RollingWindow

if TYPE_CHECKING:  # pragma: no cover
    from ..config import Settings

logger = logging.getLogger(__name__)

PROMPTS = {
    SessionPhase.NO_FACE: "Position your face in the circle",
    SessionPhase.FACE_TOO_CLOSE: "You're too close. Hold the device further.",
    SessionPhase.DETECTING: "Keep the device still and perform the following actions:",
    SessionPhase.COMPLETE: "Liveness check passed",
}


@dataclass(frozen=True)
class LivenessSession:
    challenge_order: Tuple[ChallengeKind, ...]
    face_detected: bool = False
    face_too_close: bool = False
    current_index: int = 0
    progress: float = 0.0
    complete: bool = False
    angle_window: RollingWindow = field(default_factory=RollingWindow)

    @property
    def phase(self) -> SessionPhase:
        if self.complete:
            return SessionPhase.COMPLETE
        if self.face_too_close:
            return SessionPhase.FACE_TOO_CLOSE
        if self.face_detected:
            return SessionPhase.DETECTING
        return SessionPhase.NO_FACE

    @property
    def current_challenge(self) -> Optional[ChallengeKind]:
        if self.phase is not SessionPhase.DETECTING:
            return None
        return self.challenge_order[self.current_index]

    @property
    def prompt(self) -> str:
        return PROMPTS[self.phase]


class LivenessMachine:
    """Advances a :class:`LivenessSession` one camera frame at a time.

    The machine holds configuration only (catalog, framing strategy and the
    too-close limit); all mutable state lives in the session value passed to
    :meth:`process`.
    """

    def __init__(
        self,
        catalog: ChallengeCatalog,
        framing: FramingStrategy,
        *,
        max_face_size: Optional[float] = None,
        window_size: int = NOD_WINDOW_SIZE,
    ) -> None:
        if not len(catalog):
            raise ValueError("Challenge catalog is empty")
        self.catalog = catalog
        self.framing = framing
        self.max_face_size = max_face_size
        self.window_size = window_size

    @classmethod
    def from_settings(cls, settings: "Settings") -> "LivenessMachine":
        max_face_size = None
        if settings.too_close_margin is not None:
            max_face_size = settings.preview_size - settings.too_close_margin
        return cls(
            ChallengeCatalog.from_settings(settings),
            framing_from_settings(settings),
            max_face_size=max_face_size,
        )

    def new_session(
        self,
        *,
        shuffle: bool = False,
        rng: Optional[random.Random] = None,
        order: Optional[Sequence[ChallengeKind]] = None,
    ) -> LivenessSession:
        kinds = list(order) if order is not None else list(self.catalog.kinds)
        if not kinds:
            raise ValueError("Challenge order is empty")
        unknown = [kind for kind in kinds if kind not in self.catalog.kinds]
        if unknown:
            raise ValueError(f"Challenges missing from catalog: {unknown}")
        if shuffle:
            (rng or random.SystemRandom()).shuffle(kinds)
        return LivenessSession(
            challenge_order=tuple(kinds),
            angle_window=RollingWindow(capacity=self.window_size),
        )

    def reset(self, session: LivenessSession) -> LivenessSession:
        """Initial value for the same challenge order."""

        return LivenessSession(
            challenge_order=session.challenge_order,
            angle_window=session.angle_window.cleared(),
        )

    def process(self, session: LivenessSession, observation: Optional[FaceObservation]) -> LivenessSession:
        """Apply one frame; ``None`` means zero or several faces were detected."""

        if session.complete:
            return session

        if observation is None:
            if session.face_detected or session.face_too_close:
                logger.debug("Lost single face at challenge %s; resetting", session.current_index)
            return self.reset(session)

        if not self.framing.is_face_well_framed(observation):
            if session.face_detected:
                logger.debug("Face left the preview region at challenge %s; resetting", session.current_index)
            return self.reset(session)

        unit = 100.0 / (len(session.challenge_order) + 1)

        if not session.face_detected:
            box = observation.bounding_box
            if (
                self.max_face_size is not None
                and box.width >= self.max_face_size
                and box.height >= self.max_face_size
            ):
                return replace(session, face_too_close=True)
            logger.info("Face acquired; starting challenges %s", [kind.value for kind in session.challenge_order])
            session = replace(session, face_too_close=False, face_detected=True, progress=unit)

        challenge = self.catalog.get(session.challenge_order[session.current_index])
        passed, window = evaluate(challenge, observation, session.angle_window)
        if not passed:
            if window is session.angle_window:
                return session
            return replace(session, angle_window=window)

        next_index = session.current_index + 1
        logger.info("Challenge %s passed (%s/%s)", challenge.kind.value, next_index, len(session.challenge_order))
        if next_index == len(session.challenge_order):
            return replace(session, complete=True, progress=100.0, angle_window=window.cleared())
        return replace(
            session,
            current_index=next_index,
            progress=unit * (next_index + 1),
            angle_window=window.cleared(),
        )

    def instruction(self, session: LivenessSession) -> Optional[str]:
        kind = session.current_challenge
        if kind is None:
            return None
        return self.catalog.get(kind).instruction

    def snapshot(self, session: LivenessSession) -> Dict[str, Any]:
        """Presentation view of a session."""

        current = session.current_challenge
        return {
            "phase": session.phase.value,
            "face_detected": session.face_detected,
            "face_too_close": session.face_too_close,
            "current_challenge": current.value if current else None,
            "challenge_order": [kind.value for kind in session.challenge_order],
            "progress": session.progress,
            "complete": session.complete,
            "prompt": session.prompt,
            "instruction": self.instruction(session),
        }


__all__ = ["LivenessMachine", "LivenessSession", "PROMPTS"]
