from __future__ import annotations

import random
from typing import Sequence, TypeVar
import uuid


T = TypeVar("T")


class RandomProvider:
    """Random source injected into one assembly call.

    Bounds follow the half-open convention of ``range``: ``next_int(1, 10)``
    returns 1..9.
    """

    def __init__(self, seed: int | None = None) -> None:
        self.seed = seed
        self._random = random.Random(seed)

    def next_int(self, low: int, high: int) -> int:
        if high <= low:
            return low
        return self._random.randrange(low, high)

    def next_float(self) -> float:
        return self._random.random()

    def uniform(self, low: float, high: float) -> float:
        return self._random.uniform(low, high)

    def chance(self, one_in: int) -> bool:
        return self.next_int(0, max(1, one_in)) == 0

    def choice(self, pool: Sequence[T]) -> T:
        if not pool:
            raise ValueError("cannot choose from an empty pool")
        return pool[self._random.randrange(len(pool))]

    def sample(self, pool: Sequence[T], count: int) -> list[T]:
        count = max(0, min(count, len(pool)))
        return self._random.sample(list(pool), count)

    def distinct_choices(self, pool: Sequence[T], low: int, high: int) -> list[T]:
        """Draw ``next_int(low, high)`` items, keeping the first of any repeats."""
        picked: list[T] = []
        for _ in range(self.next_int(low, high)):
            item = self.choice(pool)
            if item not in picked:
                picked.append(item)
        return picked

    def new_id(self) -> str:
        return str(uuid.UUID(int=self._random.getrandbits(128), version=4))
