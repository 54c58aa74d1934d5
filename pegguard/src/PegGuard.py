"""PegGuard: Orchestrates the keeper and JIT agents.

Architecture:
    - One ContractLedger per process, built on a signing Web3 instance
    - Keeper agent: one OracleRelay cycle per RelayJob (relay, then evaluate)
    - JIT agent: one BurstController cycle per BurstJob (open, wait, settle)
    - Every cycle is wrapped in the RetryPolicy and run by the Scheduler on
      its own fixed-period loop
"""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Sequence

from .BindingCache import BindingCache
from .BurstController import BurstController
from .ContractUtility import ContractUtility
from .EventInterpreter import EventInterpreter
from .JobDescriptor import BurstJob, RelayJob
from .Ledger import ContractLedger
from .OracleRelay import DEFAULT_SETTLE_DELAY_SECONDS, OracleRelay
from .PriceServiceClient import PriceServiceClient
from .RetryPolicy import RetryPolicy
from .Scheduler import ScheduledJob, Scheduler

if TYPE_CHECKING:
    from .Ledger import Ledger
    from .PegGuardConfig import PegGuardSettings

logger = logging.getLogger(__name__)

AGENTS = ("keeper", "jit")


def schedule_relay_jobs(
    jobs: Sequence[RelayJob], relay: OracleRelay, default_interval: float
) -> list[ScheduledJob]:
    """Bind relay jobs to the relay cycle."""
    return [
        ScheduledJob(
            label=f"keeper:{job.label}",
            interval=job.interval or default_interval,
            cycle=functools.partial(relay.run_cycle, job),
        )
        for job in jobs
    ]


def schedule_burst_jobs(
    jobs: Sequence[BurstJob], controller: BurstController, default_interval: float
) -> list[ScheduledJob]:
    """Bind burst jobs to the burst controller cycle."""
    return [
        ScheduledJob(
            label=f"jit:{job.label}",
            interval=job.interval or default_interval,
            cycle=functools.partial(controller.run_cycle, job),
        )
        for job in jobs
    ]


class PegGuard:
    """Runs one agent (keeper or jit) against the ledger.

    :ivar agent: Agent name, "keeper" or "jit".
    :ivar settings: Loaded settings.
    :ivar ledger: Ledger shared by every job of the agent.
    :ivar scheduler: Scheduler running the agent's jobs.
    """

    def __init__(
        self,
        agent: str,
        settings: PegGuardSettings,
        retry_policy: RetryPolicy | None = None,
        settle_delay: float = DEFAULT_SETTLE_DELAY_SECONDS,
        ledger: Ledger | None = None,
        price_service: PriceServiceClient | None = None,
    ) -> None:
        """Initialize the agent.

        :param agent: "keeper" or "jit".
        :param settings: Loaded settings.
        :param retry_policy: Retry policy (default: 3 retries, 5s apart).
        :param settle_delay: Pause between oracle update and evaluation.
        :param ledger: Optional ledger; built from settings when omitted.
        :param price_service: Optional price service client.
        :raises ConfigurationError: If the agent's settings are incomplete.
        :raises ValueError: If the agent name is unknown.
        """
        if agent not in AGENTS:
            raise ValueError(f"Unknown agent '{agent}'. Available: {', '.join(AGENTS)}")
        if agent == "keeper":
            settings.require_keeper()
        else:
            settings.require_jit()

        self.agent = agent
        self.settings = settings
        self.retry_policy = retry_policy or RetryPolicy()
        self.ledger = ledger if ledger is not None else self._build_ledger()

        if agent == "keeper":
            relay = OracleRelay(
                price_service=price_service or PriceServiceClient(),
                ledger=self.ledger,
                interpreter=EventInterpreter(),
                settle_delay=settle_delay,
            )
            jobs = schedule_relay_jobs(settings.relay_jobs, relay, settings.keeper_interval)
        else:
            controller = BurstController(
                self.ledger, default_threshold=settings.mode_threshold
            )
            jobs = schedule_burst_jobs(settings.burst_jobs, controller, settings.jit_interval)

        self.scheduler = Scheduler(jobs, self.retry_policy)

    def _build_ledger(self) -> ContractLedger:
        utility = ContractUtility(self.settings.rpc_url, self.settings.private_key)
        logger.info(f"Operator account: {utility.account.address}")

        if self.agent == "keeper":
            addresses = {
                "keeper_address": self.settings.keeper_address,
                "pyth_address": self.settings.pyth_address,
            }
        else:
            addresses = {
                "manager_address": self.settings.manager_address,
                "hook_address": self.settings.hook_address,
            }
        return ContractLedger(utility.w3, binding_cache=BindingCache(), **addresses)

    @property
    def contract_address(self) -> str | None:
        if self.agent == "keeper":
            return self.settings.keeper_address
        return self.settings.manager_address

    async def run(self, ticks: int | None = None) -> None:
        """Run the agent's scheduler.

        :param ticks: Ticks per job before returning, None to run forever.
        """
        logger.info(
            f"[{self.agent}] managing {len(self.scheduler.jobs)} pool(s) "
            f"via {self.contract_address}"
        )
        try:
            await self.scheduler.run(ticks)
        finally:
            await PriceServiceClient.close_shared_client()
