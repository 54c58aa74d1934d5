"""Shared fixtures: pool keys and an in-memory ledger."""

from __future__ import annotations

from typing import Any

import pytest

from pegguard.src.Ledger import Ledger
from pegguard.src.PoolKey import PoolKey
from pegguard.src.RiskSnapshot import (
    BurstRecord,
    PoolFeedConfig,
    PoolRiskState,
    RiskSnapshot,
)

USDC = "0x" + "11" * 20
USDT = "0x" + "22" * 20
HOOK = "0x" + "33" * 20
OPERATOR = "0x" + "ab" * 20


def make_snapshot(mode: int) -> RiskSnapshot:
    return RiskSnapshot(
        config=PoolFeedConfig(b"\x01" * 32, b"\x02" * 32, 3000, 10000, 100),
        state=PoolRiskState(mode, False, 0, 0, 0, 0, 0, 0),
    )


class FakeLedger(Ledger):
    """Ledger recording every call, with scripted state and failures.

    :ivar calls: (method name, args) in call order.
    :ivar failures: Per-method queue of exceptions raised before succeeding.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple]] = []
        self.mode = 0
        self.record = BurstRecord.inactive()
        self.fee = 7
        self.logs: list[Any] = []
        self.failures: dict[str, list[BaseException]] = {}
        self._tx_count = 0

    @property
    def operator(self) -> str:
        return OPERATOR

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        queued = self.failures.get(name)
        if queued:
            raise queued.pop(0)

    def _receipt(self) -> dict[str, Any]:
        self._tx_count += 1
        return {
            "transactionHash": bytes([self._tx_count]) * 32,
            "blockNumber": 100 + self._tx_count,
            "status": 1,
            "logs": list(self.logs),
        }

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    async def read_risk_snapshot(self, pool_key):
        self._record("read_risk_snapshot", pool_key)
        return make_snapshot(self.mode)

    async def read_burst_record(self, pool_id):
        self._record("read_burst_record", pool_id)
        return self.record

    async def trigger_evaluation(self, pool_key):
        self._record("trigger_evaluation", pool_key)
        return self._receipt()

    async def open_burst(self, pool_key, liquidity, amount0_max, amount1_max, operator, duration):
        self._record(
            "open_burst", pool_key, liquidity, amount0_max, amount1_max, operator, duration
        )
        return self._receipt()

    async def open_flash_funded_burst(
        self,
        borrower,
        pool_key,
        liquidity,
        amount0_max,
        amount1_max,
        executor,
        executor_data,
        asset,
        amount,
        operator,
    ):
        self._record(
            "open_flash_funded_burst",
            borrower,
            pool_key,
            liquidity,
            amount0_max,
            amount1_max,
            executor,
            executor_data,
            asset,
            amount,
            operator,
        )
        return self._receipt()

    async def close_burst(self, pool_key, min_out0, min_out1):
        self._record("close_burst", pool_key, min_out0, min_out1)
        return self._receipt()

    async def get_update_fee(self, update_data):
        self._record("get_update_fee", update_data)
        return self.fee

    async def submit_update(self, update_data, fee):
        self._record("submit_update", update_data, fee)
        return self._receipt()


@pytest.fixture
def pool_key() -> PoolKey:
    return PoolKey(USDC, USDT, 0x800000, 1, HOOK)


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()
