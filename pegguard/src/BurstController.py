"""BurstController: Open and settle JIT liquidity bursts from ledger state.

The burst lifecycle has no local state. Each cycle reads the risk snapshot
and the burst record and derives the action:

    ========  ==================  =========================  ======
    active    mode >= threshold   now > expiry + buffer      action
    ========  ==================  =========================  ======
    no        no                  -                          none
    no        yes                 -                          open
    yes       -                   no                         none
    yes       -                   yes                        close
    ========  ==================  =========================  ======
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from .Ledger import ZERO_ADDRESS, tx_hash_hex
from .RiskSnapshot import BurstRecord, Mode

if TYPE_CHECKING:
    from .JobDescriptor import BurstJob
    from .Ledger import Ledger

logger = logging.getLogger(__name__)

DEFAULT_MODE_THRESHOLD = int(Mode.CRISIS)


class BurstAction(Enum):
    NONE = "none"
    OPEN = "open"
    CLOSE = "close"


def decide_burst_action(
    mode: int,
    record: BurstRecord,
    now: float,
    threshold: int,
    settle_buffer: float,
) -> BurstAction:
    """Decide what a burst job should do this cycle.

    :param mode: Current risk mode ordinal.
    :param record: Freshly read burst record.
    :param now: Current unix time in seconds.
    :param threshold: Minimum mode that opens a burst.
    :param settle_buffer: Grace seconds after expiry before closing.
    :returns: The single action to take.
    """
    if mode >= threshold and not record.active:
        return BurstAction.OPEN
    if record.active and now > record.expiry + settle_buffer:
        return BurstAction.CLOSE
    return BurstAction.NONE


class BurstController:
    """Executes burst decisions against the ledger.

    :ivar ledger: Ledger for reads and writes.
    :ivar default_threshold: Mode threshold for jobs without their own.
    """

    def __init__(
        self,
        ledger: Ledger,
        default_threshold: int = DEFAULT_MODE_THRESHOLD,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ledger = ledger
        self.default_threshold = default_threshold
        self._clock = clock

    async def run_cycle(self, job: BurstJob) -> BurstAction:
        """Read ledger state and perform at most one burst write.

        :param job: Burst job to evaluate.
        :returns: The action taken.
        """
        snapshot = await self.ledger.read_risk_snapshot(job.pool)
        record = await self.ledger.read_burst_record(job.pool_id)
        threshold = (
            job.mode_threshold if job.mode_threshold is not None else self.default_threshold
        )

        action = decide_burst_action(
            snapshot.mode, record, self._clock(), threshold, job.settle_buffer
        )
        logger.debug(
            f"[{job.label}] mode={Mode.label(snapshot.mode)} active={record.active} "
            f"expiry={record.expiry} -> {action.value}"
        )

        if action is BurstAction.OPEN:
            logger.info(f"[{job.label}] executing burst")
            receipt = await self._open(job)
            logger.info(f"[{job.label}] burst tx {tx_hash_hex(receipt)}")
        elif action is BurstAction.CLOSE:
            logger.info(f"[{job.label}] settling burst tokenId={record.token_id}")
            receipt = await self.ledger.close_burst(job.pool, job.min_out0, job.min_out1)
            logger.info(f"[{job.label}] settle tx {tx_hash_hex(receipt)}")
        return action

    async def _open(self, job: BurstJob) -> Any:
        funding = job.flash_funding
        if funding is None:
            return await self.ledger.open_burst(
                job.pool,
                job.liquidity,
                job.amount0_max,
                job.amount1_max,
                self.ledger.operator,
                job.duration,
            )

        receipt = await self.ledger.open_flash_funded_burst(
            funding.borrower,
            job.pool,
            job.liquidity,
            job.amount0_max,
            job.amount1_max,
            funding.executor or ZERO_ADDRESS,
            funding.executor_data,
            funding.asset,
            funding.amount,
            self.ledger.operator,
        )
        logger.info(f"[{job.label}] flash burst via {funding.borrower}")
        return receipt

