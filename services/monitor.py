#Description: Accumulation progress tracking (target percentage, portfolio value).

from threading import Lock

from models.schemas import Progress
from utils.logging import logger


class ProgressMonitor:
    def __init__(self, target: float, base_asset: str = "XRP", quote_asset: str = "USDT"):
        self.target = float(target)
        self.base_asset = base_asset
        self.quote_asset = quote_asset
        self._latest: Progress | None = None
        self._lock = Lock()

    @property
    def latest(self) -> Progress | None:
        return self._latest

    def record(self, base_balance: float, quote_balance: float, price: float) -> Progress:
        pct = base_balance / self.target * 100.0 if self.target > 0 else 0.0
        progress = Progress(base_balance=base_balance, quote_balance=quote_balance, price=price,
                            portfolio_value=quote_balance + base_balance * price,
                            target=self.target, target_pct=pct)
        with self._lock:
            self._latest = progress
        logger.info(f"Accumulation progress: {base_balance:.2f} {self.base_asset} "
                    f"({pct:.1f}% of {self.target:g}), portfolio ${progress.portfolio_value:.2f}")
        return progress
