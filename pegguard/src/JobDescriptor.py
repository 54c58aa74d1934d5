"""JobDescriptor: Immutable descriptions of the monitoring tasks.

Two job shapes exist:
    - RelayJob: push oracle price updates and trigger a risk evaluation
    - BurstJob: open or settle a temporary JIT liquidity burst

Each carries a ``kind`` tag used once, when the agent turns descriptors into
scheduled cycles.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from .PoolKey import PoolKey

DEFAULT_SETTLE_BUFFER_SECONDS = 5.0


@dataclass(frozen=True)
class FlashFundingSpec:
    """Flash-borrow funding parameters for a burst.

    :ivar borrower: Flash borrower contract that runs borrow, open, repay.
    :ivar asset: Asset borrowed.
    :ivar amount: Amount borrowed (raw units).
    :ivar executor: Optional executor contract called with the borrowed funds.
    :ivar executor_data: Opaque calldata passed to the executor.
    """

    borrower: str
    asset: str
    amount: int
    executor: str | None = None
    executor_data: bytes = b""


@dataclass(frozen=True)
class RelayJob:
    """Oracle relay job for one pool.

    :ivar label: Human-readable job label used in logs.
    :ivar pool: Pool to evaluate after each relay.
    :ivar feed_ids: Oracle feed IDs to update.
    :ivar endpoints: Price service endpoints in failover order.
    :ivar interval: Seconds between ticks, or None for the agent default.
    """

    kind: ClassVar[str] = "relay"

    label: str
    pool: PoolKey
    feed_ids: tuple[str, ...]
    endpoints: tuple[str, ...]
    interval: float | None = None


@dataclass(frozen=True)
class BurstJob:
    """JIT burst job for one pool.

    :ivar label: Human-readable job label used in logs.
    :ivar pool: Pool to monitor.
    :ivar liquidity: Liquidity to deploy when opening a burst.
    :ivar amount0_max: Max currency0 input when opening.
    :ivar amount1_max: Max currency1 input when opening.
    :ivar duration: Burst lifetime in seconds.
    :ivar mode_threshold: Minimum mode that opens a burst, None for default.
    :ivar settle_buffer: Grace seconds after expiry before settling.
    :ivar interval: Seconds between ticks, or None for the agent default.
    :ivar flash_funding: Optional flash-borrow funding parameters.
    :ivar min_out0: Minimum currency0 returned on settle.
    :ivar min_out1: Minimum currency1 returned on settle.
    """

    kind: ClassVar[str] = "burst"

    label: str
    pool: PoolKey
    liquidity: int
    amount0_max: int
    amount1_max: int
    duration: int = 0
    mode_threshold: int | None = None
    settle_buffer: float = DEFAULT_SETTLE_BUFFER_SECONDS
    interval: float | None = None
    flash_funding: FlashFundingSpec | None = None
    min_out0: int = 0
    min_out1: int = 0

    @property
    def pool_id(self) -> bytes:
        return self.pool.pool_id


JobDescriptor = RelayJob | BurstJob
