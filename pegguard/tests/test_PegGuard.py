"""Unit tests for the PegGuard agent wiring."""

import asyncio

import pytest

from pegguard.src.errors import ConfigurationError, EndpointUnavailable
from pegguard.src.JobDescriptor import BurstJob, RelayJob
from pegguard.src.PegGuard import PegGuard
from pegguard.src.PegGuardConfig import PegGuardSettings
from pegguard.src.RetryPolicy import RetryPolicy

FEED = "0x" + "aa" * 32


class FakePriceService:
    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.endpoints: list[str] = []

    async def fetch_update_data(self, feed_ids, endpoint):
        self.endpoints.append(endpoint)
        if endpoint in self.failing:
            raise EndpointUnavailable(endpoint, "down")
        return [b"vaa" for _ in feed_ids]


async def no_sleep(delay: float) -> None:
    return None


def keeper_settings(pool_key, *labels: str) -> PegGuardSettings:
    return PegGuardSettings(
        rpc_url="http://localhost:8545",
        private_key="0x" + "01" * 32,
        keeper_address="0x" + "61" * 20,
        pyth_address="0x" + "62" * 20,
        relay_jobs=tuple(
            RelayJob(label, pool_key, (FEED,), ("https://down", "https://up"))
            for label in labels
        ),
    )


def jit_settings(pool_key, threshold: int = 2) -> PegGuardSettings:
    return PegGuardSettings(
        rpc_url="http://localhost:8545",
        private_key="0x" + "01" * 32,
        manager_address="0x" + "63" * 20,
        hook_address="0x" + "64" * 20,
        burst_jobs=(BurstJob("jit-1", pool_key, 10, 1, 2, duration=60),),
        mode_threshold=threshold,
    )


class TestPegGuard:
    """Test agent construction and a single scheduled tick."""

    def test_keeper_tick(self, ledger, pool_key) -> None:
        """One tick relays once after failover and evaluates once."""
        service = FakePriceService(failing={"https://down"})
        guard = PegGuard(
            "keeper",
            keeper_settings(pool_key, "job-1"),
            retry_policy=RetryPolicy(sleep=no_sleep),
            settle_delay=0,
            ledger=ledger,
            price_service=service,
        )

        asyncio.run(guard.run(ticks=1))

        assert service.endpoints == ["https://down", "https://up"]
        assert ledger.names() == ["get_update_fee", "submit_update", "trigger_evaluation"]
        assert [job.label for job in guard.scheduler.jobs] == ["keeper:job-1"]

    def test_keeper_jobs_isolated(self, ledger, pool_key) -> None:
        """Every relay job gets its own scheduled loop."""
        guard = PegGuard(
            "keeper",
            keeper_settings(pool_key, "a", "b"),
            retry_policy=RetryPolicy(sleep=no_sleep),
            settle_delay=0,
            ledger=ledger,
            price_service=FakePriceService(),
        )

        asyncio.run(guard.run(ticks=1))

        assert ledger.names().count("trigger_evaluation") == 2
        assert guard.scheduler.jobs[0].interval == 60.0

    def test_jit_tick_uses_settings_threshold(self, ledger, pool_key) -> None:
        ledger.mode = 1
        guard = PegGuard(
            "jit",
            jit_settings(pool_key, threshold=1),
            retry_policy=RetryPolicy(sleep=no_sleep),
            ledger=ledger,
        )

        asyncio.run(guard.run(ticks=1))

        assert ledger.names() == ["read_risk_snapshot", "read_burst_record", "open_burst"]
        assert guard.contract_address == "0x" + "63" * 20

    def test_unknown_agent(self, ledger, pool_key) -> None:
        with pytest.raises(ValueError):
            PegGuard("liquidator", jit_settings(pool_key), ledger=ledger)

    def test_missing_configuration(self, ledger) -> None:
        with pytest.raises(ConfigurationError):
            PegGuard("keeper", PegGuardSettings(), ledger=ledger)

    def test_keeper_without_jobs(self, ledger, pool_key) -> None:
        with pytest.raises(ConfigurationError, match="No keeper jobs"):
            PegGuard("keeper", keeper_settings(pool_key), ledger=ledger)
