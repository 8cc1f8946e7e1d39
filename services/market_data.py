#Description: Bounded price history and the SMA/RSI indicators computed from it.
from __future__ import annotations

import pandas as pd

from collections import deque
from datetime import datetime, timezone
from typing import List, Optional

from models.schemas import Indicators, PriceSample

HISTORY_LIMIT = 200


class PriceHistory:
    """Time-ordered price samples, oldest evicted once the limit is reached."""

    def __init__(self, maxlen: int = HISTORY_LIMIT):
        self._samples: deque[PriceSample] = deque(maxlen=maxlen)

    def __len__(self) -> int:
        return len(self._samples)

    @property
    def maxlen(self) -> int:
        return self._samples.maxlen

    def append(self, sample: PriceSample) -> None:
        if self._samples and sample.timestamp < self._samples[-1].timestamp:
            # keep timestamps non-decreasing
            sample = sample.model_copy(update={"timestamp": self._samples[-1].timestamp})
        self._samples.append(sample)

    def add_price(self, price: float, ts: datetime | None = None) -> PriceSample:
        sample = PriceSample(price=price, timestamp=ts or datetime.now(timezone.utc))
        self.append(sample)
        return sample

    def last_n(self, k: int) -> List[PriceSample]:
        if k <= 0:
            return []
        return list(self._samples)[-k:]

    def prices(self) -> pd.Series:
        return pd.Series([s.price for s in self._samples], dtype="float64")


class IndicatorCalculator:
    def __init__(self, history: PriceHistory):
        self.history = history

    def sma(self, period: int) -> Optional[float]:
        """Mean of the last `period` prices, or None when history is shorter."""
        if period <= 0 or len(self.history) < period:
            return None
        return float(self.history.prices().tail(period).mean())

    def rsi(self, period: int = 14) -> float:
        """
        Relative strength over the last `period` deltas.

        Returns 50.0 until `period + 1` samples exist and 100.0 when the
        window has no losing move.
        """
        if period <= 0 or len(self.history) < period + 1:
            return 50.0
        deltas = self.history.prices().tail(period + 1).diff().dropna()
        gains = float(deltas.clip(lower=0.0).sum())
        losses = float((-deltas).clip(lower=0.0).sum())
        if losses == 0.0:
            return 100.0
        rs = (gains / period) / (losses / period)
        return float(100.0 - 100.0 / (1.0 + rs))

    def compute(self, short: int = 20, long: int = 50, rsi_period: int = 14) -> Indicators:
        return Indicators(sma_short=self.sma(short), sma_long=self.sma(long), rsi=self.rsi(rsi_period))
