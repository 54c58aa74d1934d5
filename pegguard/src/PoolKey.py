"""PoolKey: Pool identity and deterministic pool ID derivation.

A pool is identified by its asset pair, fee tier, tick spacing and hook
address. The pool ID used as the on-chain storage key is:
    keccak256(abi.encode(currency0, currency1, fee, tickSpacing, hooks))

.. code-block:: python

    >>> key = PoolKey(usdc, usdt, 0x800000, 1, hook)
    >>> len(key.pool_id)
    32
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Any, Mapping

from eth_abi import encode
from web3 import Web3

POOL_KEY_ABI_TYPES = ["address", "address", "uint24", "int24", "address"]

# Fee value flagging a dynamic-fee pool (the hook sets the fee).
DYNAMIC_FEE_FLAG = 0x800000


def _parse_int(value: Any) -> int:
    """Parse an int, accepting decimal or 0x-prefixed strings."""
    if isinstance(value, str):
        return int(value.strip(), 0)
    return int(value)


@dataclass(frozen=True)
class PoolKey:
    """Immutable pool identity with checksummed addresses.

    :ivar currency0: First asset address.
    :ivar currency1: Second asset address.
    :ivar fee: Fee tier (or the dynamic fee flag).
    :ivar tick_spacing: Tick spacing of the pool.
    :ivar hooks: Hook/controller contract address.
    """

    currency0: str
    currency1: str
    fee: int
    tick_spacing: int
    hooks: str

    def __post_init__(self) -> None:
        """Normalize addresses to checksum form and numbers to ints.

        :raises ValueError: If an address is not a valid 20-byte hex address.
        """
        for field_name in ("currency0", "currency1", "hooks"):
            value = getattr(self, field_name)
            object.__setattr__(self, field_name, Web3.to_checksum_address(value))
        object.__setattr__(self, "fee", _parse_int(self.fee))
        object.__setattr__(self, "tick_spacing", _parse_int(self.tick_spacing))

    def __str__(self) -> str:
        """Return a short human-readable pool description."""
        return (
            f"{self.currency0[:8]}/{self.currency1[:8]} "
            f"fee={self.fee} spacing={self.tick_spacing}"
        )

    def as_tuple(self) -> tuple[str, str, int, int, str]:
        """Return the ABI tuple passed to contract calls."""
        return (
            self.currency0,
            self.currency1,
            self.fee,
            self.tick_spacing,
            self.hooks,
        )

    @cached_property
    def pool_id(self) -> bytes:
        """32-byte pool ID, see :func:`derive_pool_id`."""
        return derive_pool_id(self)

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> PoolKey:
        """Build a pool key from a config mapping.

        :param cfg: Mapping with currency0, currency1, fee, tickSpacing, hooks.
        :returns: New PoolKey instance.
        :raises ValueError: If a key is missing or an address is invalid.
        """
        try:
            return cls(
                currency0=cfg["currency0"],
                currency1=cfg["currency1"],
                fee=cfg["fee"],
                tick_spacing=cfg["tickSpacing"],
                hooks=cfg["hooks"],
            )
        except KeyError as e:
            raise ValueError(f"Pool config missing field {e}") from e


def derive_pool_id(pool_key: PoolKey) -> bytes:
    """Compute the keccak256 pool ID matching the Solidity PoolId scheme.

    :param pool_key: Pool to derive the ID for.
    :returns: 32-byte keccak256 digest of the ABI-encoded pool key.
    """
    return bytes(Web3.keccak(encode(POOL_KEY_ABI_TYPES, list(pool_key.as_tuple()))))
