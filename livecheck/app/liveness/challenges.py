"""Challenge definitions and their pass predicates."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterable, NoReturn, Optional, Tuple

from .observation import FaceObservation
from .smoother import RollingWindow

if TYPE_CHECKING:  # pragma: no cover
    from ..config import Settings


class ChallengeKind(str, enum.Enum):
    BLINK = "blink"
    TURN_HEAD_LEFT = "turn_head_left"
    TURN_HEAD_RIGHT = "turn_head_right"
    NOD = "nod"
    SMILE = "smile"


DEFAULT_ORDER: Tuple[ChallengeKind, ...] = (
    ChallengeKind.BLINK,
    ChallengeKind.TURN_HEAD_LEFT,
    ChallengeKind.TURN_HEAD_RIGHT,
    ChallengeKind.NOD,
    ChallengeKind.SMILE,
)


@dataclass(frozen=True)
class Challenge:
    kind: ChallengeKind
    instruction: str
    threshold: float


def _unreachable(kind: object) -> NoReturn:
    raise AssertionError(f"Unhandled challenge kind: {kind!r}")


def evaluate(
    challenge: Challenge,
    observation: FaceObservation,
    window: RollingWindow,
) -> Tuple[bool, RollingWindow]:
    """Run the predicate of ``challenge`` against one observation.

    Returns whether the challenge passed and the rolling window to keep;
    only the nod challenge feeds the window.
    """

    kind = challenge.kind
    if kind is ChallengeKind.BLINK:
        # lower probability means the eye is closed
        passed = (
            observation.left_eye_open_probability <= challenge.threshold
            and observation.right_eye_open_probability <= challenge.threshold
        )
        return passed, window
    if kind is ChallengeKind.TURN_HEAD_LEFT:
        return observation.yaw_angle <= challenge.threshold, window
    if kind is ChallengeKind.TURN_HEAD_RIGHT:
        return observation.yaw_angle >= challenge.threshold, window
    if kind is ChallengeKind.NOD:
        window = window.push(observation.roll_angle)
        deviation = window.deviation()
        if deviation is None:
            return False, window
        return deviation >= challenge.threshold, window
    if kind is ChallengeKind.SMILE:
        return observation.smiling_probability >= challenge.threshold, window
    _unreachable(kind)


@dataclass(frozen=True)
class ChallengeCatalog:
    """Ordered, immutable set of challenge definitions."""

    challenges: Tuple[Challenge, ...]

    def __post_init__(self) -> None:
        kinds = [challenge.kind for challenge in self.challenges]
        if len(set(kinds)) != len(kinds):
            raise ValueError(f"Duplicate challenge kinds in catalog: {kinds}")

    @property
    def kinds(self) -> Tuple[ChallengeKind, ...]:
        return tuple(challenge.kind for challenge in self.challenges)

    def get(self, kind: ChallengeKind) -> Challenge:
        for challenge in self.challenges:
            if challenge.kind is kind:
                return challenge
        _unreachable(kind)

    def __len__(self) -> int:
        return len(self.challenges)

    @classmethod
    def build(
        cls,
        *,
        blink_max_open_probability: float = 0.3,
        turn_left_max_yaw: float = -15.0,
        turn_right_min_yaw: float = 15.0,
        nod_min_deviation: float = 1.5,
        smile_min_probability: float = 0.7,
        order: Optional[Iterable[ChallengeKind]] = None,
    ) -> "ChallengeCatalog":
        definitions: Dict[ChallengeKind, Challenge] = {
            ChallengeKind.BLINK: Challenge(ChallengeKind.BLINK, "Blink both eyes", blink_max_open_probability),
            ChallengeKind.TURN_HEAD_LEFT: Challenge(ChallengeKind.TURN_HEAD_LEFT, "Turn head left", turn_left_max_yaw),
            ChallengeKind.TURN_HEAD_RIGHT: Challenge(
                ChallengeKind.TURN_HEAD_RIGHT, "Turn head right", turn_right_min_yaw
            ),
            ChallengeKind.NOD: Challenge(ChallengeKind.NOD, "Nod", nod_min_deviation),
            ChallengeKind.SMILE: Challenge(ChallengeKind.SMILE, "Smile", smile_min_probability),
        }
        kinds = tuple(order) if order is not None else DEFAULT_ORDER
        return cls(challenges=tuple(definitions[ChallengeKind(kind)] for kind in kinds))

    @classmethod
    def from_settings(cls, settings: "Settings") -> "ChallengeCatalog":
        return cls.build(
            blink_max_open_probability=settings.blink_max_open_probability,
            turn_left_max_yaw=settings.turn_left_max_yaw,
            turn_right_min_yaw=settings.turn_right_min_yaw,
            nod_min_deviation=settings.nod_min_deviation,
            smile_min_probability=settings.smile_min_probability,
            order=settings.challenge_order,
        )


__all__ = ["Challenge", "ChallengeCatalog", "ChallengeKind", "DEFAULT_ORDER", "evaluate"]
