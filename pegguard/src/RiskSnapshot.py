"""RiskSnapshot and BurstRecord: ledger state read fresh every cycle.

Both are parsed from positional contract call results:
    getPoolSnapshot(key) -> ((feedId0, feedId1, baseFee, maxFee, minFee),
                             (mode, jitActive, depegBps, confBps, overrideFee,
                              reserve, penalties, rebates))
    bursts(poolId) -> (tokenId, funder, liquidity, expiry, active)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Sequence


class Mode(IntEnum):
    """Ordinal risk mode computed by the hook."""

    CALM = 0
    ALERT = 1
    CRISIS = 2

    @classmethod
    def label(cls, value: int) -> str:
        """Return the display name for a mode ordinal.

        :param value: Raw mode ordinal.
        :returns: "Calm", "Alert", "Crisis" or "Unknown".
        """
        try:
            return cls(int(value)).name.capitalize()
        except ValueError:
            return "Unknown"


@dataclass(frozen=True)
class PoolFeedConfig:
    price_feed_id0: bytes
    price_feed_id1: bytes
    base_fee: int
    max_fee: int
    min_fee: int


@dataclass(frozen=True)
class PoolRiskState:
    mode: int
    jit_liquidity_active: bool
    last_depeg_bps: int
    last_confidence_bps: int
    last_override_fee: int
    reserve_balance: int
    total_penalty_fees: int
    total_rebates: int


@dataclass(frozen=True)
class RiskSnapshot:
    """Feed configuration and risk state of one pool.

    :ivar config: Feed IDs and fee bounds.
    :ivar state: Mutable risk state at read time.
    """

    config: PoolFeedConfig
    state: PoolRiskState

    @property
    def mode(self) -> int:
        return self.state.mode

    @classmethod
    def from_call(cls, result: Sequence[Sequence[Any]]) -> RiskSnapshot:
        """Parse a getPoolSnapshot() return value.

        :param result: Two-element sequence of (config, state) tuples.
        :returns: Parsed snapshot.
        """
        config, state = result
        return cls(
            config=PoolFeedConfig(
                price_feed_id0=bytes(config[0]),
                price_feed_id1=bytes(config[1]),
                base_fee=int(config[2]),
                max_fee=int(config[3]),
                min_fee=int(config[4]),
            ),
            state=PoolRiskState(
                mode=int(state[0]),
                jit_liquidity_active=bool(state[1]),
                last_depeg_bps=int(state[2]),
                last_confidence_bps=int(state[3]),
                last_override_fee=int(state[4]),
                reserve_balance=int(state[5]),
                total_penalty_fees=int(state[6]),
                total_rebates=int(state[7]),
            ),
        )


@dataclass(frozen=True)
class BurstRecord:
    """Authoritative state of a pool's burst position.

    A pool that never had a burst reads back as an inactive zero record.

    :ivar token_id: Position token ID.
    :ivar funder: Address that funded the burst.
    :ivar liquidity: Deployed liquidity.
    :ivar expiry: Unix timestamp after which the burst may be settled.
    :ivar active: Whether the burst is currently open.
    """

    token_id: int
    funder: str
    liquidity: int
    expiry: int
    active: bool

    @classmethod
    def inactive(cls) -> BurstRecord:
        return cls(
            token_id=0,
            funder="0x0000000000000000000000000000000000000000",
            liquidity=0,
            expiry=0,
            active=False,
        )

    @classmethod
    def from_call(cls, result: Sequence[Any]) -> BurstRecord:
        """Parse a bursts(bytes32) return value.

        :param result: (tokenId, funder, liquidity, expiry, active).
        :returns: Parsed record.
        """
        token_id, funder, liquidity, expiry, active = result
        return cls(
            token_id=int(token_id),
            funder=str(funder),
            liquidity=int(liquidity),
            expiry=int(expiry),
            active=bool(active),
        )
