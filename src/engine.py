import logging
from typing import Dict, TextIO

from ledger import Ledger
from models import AccountSnapshot, ClientId, ReplayStats
from transactions import MalformedRecordError, read_transactions

logger = logging.getLogger(__name__)


class ReplayEngine:
    """
    Replays a transaction CSV against a Ledger, strictly in input order.
    Malformed rows are logged and skipped before they reach the ledger.
    """

    def __init__(self):
        self._ledger = Ledger()

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def stats(self) -> ReplayStats:
        return self._ledger.stats

    def process_file(self, filepath: str) -> Dict[ClientId, AccountSnapshot]:
        """Process CSV file and return the final account snapshot."""
        with open(filepath, "r", encoding="utf-8", newline="") as f:
            return self.process_stream(f)

    def process_stream(self, stream: TextIO) -> Dict[ClientId, AccountSnapshot]:
        logger.info("Starting replay")

        for item in read_transactions(stream):
            if isinstance(item, MalformedRecordError):
                logger.warning(f"Failed to parse row {item.row}: {item}")
                self.stats.record_malformed()
                continue
            self._ledger.apply(item)

        logger.info(f"Replay complete: {self.stats.summary()}")
        return self._ledger.snapshot()
