"""Rolling window over head-roll samples for the nod challenge."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

NOD_WINDOW_SIZE = 10


@dataclass(frozen=True)
class RollingWindow:
    """Fixed-capacity FIFO of absolute angles.

    A window is only evaluated once full: the newest sample is compared with
    the mean of the samples before it, so a nod never biases its own baseline.
    """

    capacity: int = NOD_WINDOW_SIZE
    samples: Tuple[float, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.capacity < 2:
            raise ValueError("rolling window needs room for a baseline and a newest sample")

    def push(self, sample: float) -> "RollingWindow":
        samples = self.samples + (abs(sample),)
        if len(samples) > self.capacity:
            samples = samples[-self.capacity :]
        return RollingWindow(capacity=self.capacity, samples=samples)

    def cleared(self) -> "RollingWindow":
        return RollingWindow(capacity=self.capacity)

    @property
    def ready(self) -> bool:
        return len(self.samples) >= self.capacity

    def deviation(self) -> Optional[float]:
        """Distance of the newest sample from the baseline, ``None`` until full."""

        if not self.ready:
            return None
        baseline = self.samples[:-1]
        average = sum(baseline) / len(baseline)
        return abs(average - self.samples[-1])

    def __len__(self) -> int:
        return len(self.samples)


__all__ = ["NOD_WINDOW_SIZE", "RollingWindow"]
