import random
from typing import Iterable

from .action_type import ActionType


DEFAULT_WEIGHTS: tuple[tuple[ActionType, int], ...] = (
    (ActionType.RESTART_SERVER, 1),
    (ActionType.PAUSE_SERVER, 4),
    (ActionType.RESUME_SERVER, 5),
    (ActionType.PUBLISH, 20),
    (ActionType.CONSUME, 20),
)


class ActionWeights:
    """
    Maps a roll in [0, total) onto an action. Faults stay rare next to
    traffic, and resume outweighs pause so the cluster drifts back toward
    running.
    """

    __slots__ = (
        "_weights",
        "_total",
    )

    def __init__(
        self,
        weights: Iterable[tuple[ActionType, int]] = DEFAULT_WEIGHTS,
    ) -> None:
        self._weights = tuple(weights)

        if len(self._weights) == 0:
            raise ValueError("At least one weighted action is required")

        for action, weight in self._weights:
            if weight < 1:
                raise ValueError(f"Weight for {action.value} must be at least 1")

        self._total = sum(weight for _, weight in self._weights)

    @property
    def total(self) -> int:
        return self._total

    def select(self, roll: int) -> ActionType:
        if roll < 0 or roll >= self._total:
            raise ValueError(f"Roll {roll} outside of [0, {self._total})")

        for action, weight in self._weights:
            if roll < weight:
                return action

            roll -= weight

        raise AssertionError("impossible choice")

    def choose(self, rng: random.Random) -> ActionType:
        return self.select(rng.randrange(self._total))
