"""Fixed-capacity rolling price window owned by a single strategy."""

from collections import deque
from decimal import Decimal
from typing import Iterator, Optional


class PriceWindow:
    """
    Ring buffer of the most recent prices.

    Pushing into a full window evicts the oldest price.
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._prices: deque[Decimal] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._prices.maxlen  # type: ignore[return-value]

    def push(self, price: Decimal) -> None:
        self._prices.append(price)

    def __len__(self) -> int:
        return len(self._prices)

    def __iter__(self) -> Iterator[Decimal]:
        return iter(self._prices)

    def is_full(self) -> bool:
        return len(self._prices) == self.capacity

    def oldest(self) -> Optional[Decimal]:
        return self._prices[0] if self._prices else None

    def latest(self) -> Optional[Decimal]:
        return self._prices[-1] if self._prices else None

    def mean(self) -> Optional[Decimal]:
        if not self._prices:
            return None
        return sum(self._prices, Decimal("0")) / len(self._prices)

    def stdev(self) -> Optional[Decimal]:
        """Sample standard deviation (n - 1), None with fewer than two prices."""
        n = len(self._prices)
        if n < 2:
            return None
        mu = self.mean()
        variance = sum(((p - mu) ** 2 for p in self._prices), Decimal("0")) / (n - 1)
        return variance.sqrt()

    def clear(self) -> None:
        self._prices.clear()
