"""OracleRelay: Push signed price updates on-chain and trigger risk evaluation.

Per relay cycle:
    1. Fetch update data for the job's feeds, failing over across endpoints
       in configured order
    2. Read the on-chain update fee and submit the update paying that fee
    3. Pause briefly so the hook observes the new price
    4. Trigger exactly one risk evaluation for the pool
    5. Log the evaluation events from the receipt
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Sequence

from web3 import Web3

from .errors import AllEndpointsUnavailable, EndpointUnavailable
from .Ledger import tx_hash_hex

if TYPE_CHECKING:
    from .EventInterpreter import EventInterpreter
    from .JobDescriptor import RelayJob
    from .Ledger import Ledger
    from .PriceServiceClient import PriceServiceClient

logger = logging.getLogger(__name__)

# Pause between the oracle update confirming and the evaluation trigger.
DEFAULT_SETTLE_DELAY_SECONDS = 1.0


class OracleRelay:
    """Relays oracle price updates for relay jobs.

    :ivar price_service: Client fetching update payloads per endpoint.
    :ivar ledger: Ledger used for the fee read and the writes.
    :ivar interpreter: Optional event interpreter for evaluation receipts.
    :ivar settle_delay: Seconds to pause before triggering evaluation.
    """

    def __init__(
        self,
        price_service: PriceServiceClient,
        ledger: Ledger,
        interpreter: EventInterpreter | None = None,
        settle_delay: float = DEFAULT_SETTLE_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.price_service = price_service
        self.ledger = ledger
        self.interpreter = interpreter
        self.settle_delay = settle_delay
        self._sleep = sleep

    async def fetch_update(
        self, feed_ids: Sequence[str], endpoints: Sequence[str], label: str = ""
    ) -> list[bytes]:
        """Fetch update data, trying endpoints strictly in order.

        :param feed_ids: Feed IDs to fetch.
        :param endpoints: Endpoints in failover priority order.
        :param label: Job label for log lines.
        :returns: Update payload from the first endpoint that succeeded.
        :raises AllEndpointsUnavailable: If every endpoint failed.
        """
        last_error: EndpointUnavailable | None = None
        for endpoint in endpoints:
            try:
                update_data = await self.price_service.fetch_update_data(
                    list(feed_ids), endpoint
                )
            except EndpointUnavailable as e:
                last_error = e
                logger.warning(f"[{label}] endpoint {endpoint} failed: {e}")
                continue
            logger.info(f"[{label}] fetched updates from {endpoint}")
            return update_data

        raise AllEndpointsUnavailable(last_error)

    async def relay(
        self, feed_ids: Sequence[str], endpoints: Sequence[str], label: str = ""
    ) -> Any:
        """Fetch an update and submit it on-chain with the required fee.

        :returns: Receipt of the update transaction.
        :raises AllEndpointsUnavailable: If no endpoint returned data.
        :raises LedgerCallFailure: If the fee read or submission failed.
        """
        update_data = await self.fetch_update(feed_ids, endpoints, label)

        fee = await self.ledger.get_update_fee(update_data)
        logger.info(f"[{label}] update fee: {Web3.from_wei(fee, 'ether')} ETH")

        receipt = await self.ledger.submit_update(update_data, fee)
        logger.info(
            f"[{label}] pushed oracle update tx={tx_hash_hex(receipt)} "
            f"block={receipt.get('blockNumber')}"
        )
        return receipt

    async def run_cycle(self, job: RelayJob) -> Any:
        """Run one relay-then-evaluate cycle for a job.

        :param job: Relay job to run.
        :returns: Receipt of the evaluation transaction, or None if skipped.
        """
        feed_ids = [feed_id.strip() for feed_id in job.feed_ids if feed_id.strip()]
        if not feed_ids:
            logger.warning(f"[{job.label}] No feed IDs configured, skipping")
            return None

        logger.info(f"[{job.label}] fetching price updates")
        await self.relay(feed_ids, job.endpoints, job.label)

        await self._sleep(self.settle_delay)

        receipt = await self.ledger.trigger_evaluation(job.pool)
        if self.interpreter is not None:
            self.interpreter.log_events(job.label, receipt)
        logger.info(
            f"[{job.label}] evaluateAndUpdate tx={tx_hash_hex(receipt)} "
            f"block={receipt.get('blockNumber')}"
        )
        return receipt
