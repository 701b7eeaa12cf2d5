"""
Submission tracking.

After a block item is submitted the node reports it as received, then as
committed to one or more candidate blocks, and finally as finalized in
exactly one block. SubmissionTracker polls the node until the item is
finalized, or until its deadline passes.
"""

from __future__ import annotations
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Dict, List, Optional

from ..runtime.errors import SubmissionExpiredError
from ..runtime.hashes import BlockHash, TransactionHash
from ..types import BlockItemSummary, TransactionStatus, TransactionTime
from ..v2.client import Client

logger = logging.getLogger(__name__)


@dataclass
class TrackerConfig:
    """Polling configuration for SubmissionTracker."""
    poll_interval: float = 1.0
    grace_period: float = 30.0  # Seconds past expiry before giving up


class SubmissionTracker:
    """
    Follows one submission until it is finalized.

    Polls immediately, then every ``poll_interval`` seconds. Errors from the
    status query are not retried and end the tracking. When ``expiry`` is
    given, tracking fails with SubmissionExpiredError once the item is still
    not finalized ``grace_period`` seconds after it.
    """

    def __init__(
        self,
        client: Client,
        submission_id: TransactionHash,
        expiry: Optional[TransactionTime] = None,
        config: Optional[TrackerConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.submission_id = submission_id
        self.expiry = expiry
        self.config = config or TrackerConfig()
        self._clock = clock
        self._warned_expiry = False
        self.observed: List[TransactionStatus] = []

    @property
    def deadline(self) -> Optional[float]:
        if self.expiry is None:
            return None
        return self.expiry.seconds + self.config.grace_period

    def _check_deadline(self) -> None:
        if self.expiry is None:
            return
        now = self._clock()
        if now > self.deadline:
            logger.warning(f"Submission {self.submission_id} not finalized {self.config.grace_period}s after expiry")
            raise SubmissionExpiredError(
                f"Submission {self.submission_id} was not finalized before its deadline",
                {"submission_id": str(self.submission_id), "expiry": self.expiry.seconds,
                 "grace_period": self.config.grace_period},
            )
        if now > self.expiry.seconds and not self._warned_expiry:
            self._warned_expiry = True
            logger.warning(f"Submission {self.submission_id} has passed its expiry and is not finalized")

    async def statuses(self) -> AsyncIterator[TransactionStatus]:
        """
        Yield the status observed by each poll.

        Ends after the first Finalized status.

        Raises:
            SubmissionExpiredError: If the deadline passes first
            LedgerClientError: If a status query fails
        """
        previous: Optional[TransactionStatus] = None
        while True:
            status = await self.client.get_block_item_status(self.submission_id)
            self.observed.append(status)
            if status != previous:
                logger.info(f"Submission {self.submission_id} is {status}")
            previous = status

            yield status

            if status.is_finalized:
                return

            self._check_deadline()
            await asyncio.sleep(self.config.poll_interval)

    async def wait_until_finalized(self) -> Dict[BlockHash, BlockItemSummary]:
        """
        Poll until the submission is finalized.

        Returns:
            The finalized block and the item's outcome in it
        """
        final = None
        async for status in self.statuses():
            final = status
        # statuses() ends normally only after a Finalized status
        return final.blocks


__all__ = ["TrackerConfig", "SubmissionTracker"]
