"""Ledger: Async boundary to the on-chain hook, keeper, JIT manager and oracle.

The agents only talk to the chain through the :class:`Ledger` interface.
:class:`ContractLedger` implements it on web3 contract bindings; tests use
in-memory fakes.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from web3 import Web3

from .BindingCache import BindingCache
from .ContractUtility import ContractUtility
from .errors import ConfigurationError, LedgerCallFailure
from .PoolKey import PoolKey
from .RiskSnapshot import BurstRecord, RiskSnapshot

if TYPE_CHECKING:
    from web3.contract import Contract
    from web3.contract.contract import ContractFunction
    from web3.types import TxReceipt

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Seconds to wait for a transaction to be mined.
RECEIPT_TIMEOUT = 120

T = TypeVar("T")


def tx_hash_hex(receipt: Any) -> str:
    """Return the 0x-prefixed transaction hash of a receipt for logging."""
    tx_hash = receipt.get("transactionHash") if receipt else None
    if isinstance(tx_hash, (bytes, bytearray)):
        return Web3.to_hex(tx_hash)
    return str(tx_hash)


class Ledger(ABC):
    """Abstract interface for ledger reads and writes.

    Every method may raise :class:`LedgerCallFailure`. Writes return the
    receipt of a successfully mined transaction.
    """

    @property
    @abstractmethod
    def operator(self) -> str:
        """Address that signs writes and receives burst positions."""
        pass

    @abstractmethod
    async def read_risk_snapshot(self, pool_key: PoolKey) -> RiskSnapshot:
        pass

    @abstractmethod
    async def read_burst_record(self, pool_id: bytes) -> BurstRecord:
        pass

    @abstractmethod
    async def trigger_evaluation(self, pool_key: PoolKey) -> Any:
        pass

    @abstractmethod
    async def open_burst(
        self,
        pool_key: PoolKey,
        liquidity: int,
        amount0_max: int,
        amount1_max: int,
        operator: str,
        duration: int,
    ) -> Any:
        pass

    @abstractmethod
    async def open_flash_funded_burst(
        self,
        borrower: str,
        pool_key: PoolKey,
        liquidity: int,
        amount0_max: int,
        amount1_max: int,
        executor: str,
        executor_data: bytes,
        asset: str,
        amount: int,
        operator: str,
    ) -> Any:
        """Open a burst funded by a flash borrow (borrow, open, repay at once).

        :param borrower: Flash borrower contract address.
        """
        pass

    @abstractmethod
    async def close_burst(self, pool_key: PoolKey, min_out0: int, min_out1: int) -> Any:
        pass

    @abstractmethod
    async def get_update_fee(self, update_data: list[bytes]) -> int:
        pass

    @abstractmethod
    async def submit_update(self, update_data: list[bytes], fee: int) -> Any:
        pass


class ContractLedger(Ledger):
    """Ledger implementation on web3 contracts.

    Blocking web3 calls run in worker threads. Writes share one lock so the
    operator's nonces are assigned in submission order.

    :ivar w3: Web3 instance with a signing middleware installed.
    :ivar keeper: Keeper contract (evaluateAndUpdate), if configured.
    :ivar pyth: Oracle contract (getUpdateFee, updatePriceFeeds), if configured.
    :ivar manager: JIT manager contract (bursts, executeBurst, settleBurst).
    :ivar hook: Hook contract (getPoolSnapshot), if configured.
    """

    def __init__(
        self,
        w3: Web3,
        *,
        keeper_address: str | None = None,
        pyth_address: str | None = None,
        manager_address: str | None = None,
        hook_address: str | None = None,
        binding_cache: BindingCache[str, Contract] | None = None,
        receipt_timeout: float = RECEIPT_TIMEOUT,
    ) -> None:
        """Initialize the contract ledger.

        :param w3: Web3 instance whose default account signs writes.
        :param keeper_address: PegGuard keeper contract address.
        :param pyth_address: Pyth oracle contract address.
        :param manager_address: JIT manager contract address.
        :param hook_address: PegGuard hook contract address.
        :param binding_cache: Shared cache for flash borrower bindings.
        :param receipt_timeout: Seconds to wait for a receipt.
        """
        self.w3 = w3
        self.receipt_timeout = receipt_timeout
        self.binding_cache: BindingCache[str, Contract] = (
            binding_cache if binding_cache is not None else BindingCache()
        )
        self.keeper = self._bind(keeper_address, "PegGuardKeeper")
        self.pyth = self._bind(pyth_address, "Pyth")
        self.manager = self._bind(manager_address, "PegGuardJITManager")
        self.hook = self._bind(hook_address, "PegGuardHook")
        self._send_lock = asyncio.Lock()

    def _bind(self, address: str | None, contract_name: str) -> Contract | None:
        if not address:
            return None
        return self.w3.eth.contract(
            address=Web3.to_checksum_address(address),
            abi=ContractUtility.get_abi(contract_name),
        )

    @staticmethod
    def _require(contract: Contract | None, name: str) -> Contract:
        if contract is None:
            raise ConfigurationError(f"{name} contract address is not configured")
        return contract

    @property
    def operator(self) -> str:
        return str(self.w3.eth.default_account)

    def borrower(self, address: str) -> Contract:
        """Get the cached flash borrower binding for an address.

        :param address: Flash borrower contract address (any case).
        :returns: Contract binding.
        """
        return self.binding_cache.get_or_create(
            Web3.to_checksum_address(address),
            lambda addr: self.w3.eth.contract(
                address=addr, abi=ContractUtility.get_abi("FlashBorrower")
            ),
        )

    async def _run(self, description: str, fn: Callable[[], T]) -> T:
        """Run a blocking web3 call in a worker thread.

        :raises LedgerCallFailure: If the call raises.
        """
        try:
            return await asyncio.to_thread(fn)
        except LedgerCallFailure:
            raise
        except Exception as e:
            raise LedgerCallFailure(f"{description} failed: {e}") from e

    def _submit_tx(self, description: str, call: ContractFunction, value: int = 0) -> TxReceipt:
        """Sign, send and wait for a transaction.

        :param description: Label for logs and errors.
        :param call: Bound contract function to transact.
        :param value: Native value to attach.
        :returns: Receipt of the mined transaction.
        :raises LedgerCallFailure: If the transaction is mined with status 0.
        """
        tx_params = call.build_transaction({"from": self.operator, "value": value})
        tx_hash = self.w3.eth.send_transaction(tx_params)
        logger.debug(f"{description}: sent tx {Web3.to_hex(tx_hash)}")

        tx_receipt = self.w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self.receipt_timeout
        )
        if tx_receipt["status"] != 1:
            raise LedgerCallFailure(
                f"{description} reverted in tx {Web3.to_hex(tx_hash)}", receipt=tx_receipt
            )
        return tx_receipt

    async def _transact(
        self, description: str, call: ContractFunction, value: int = 0
    ) -> TxReceipt:
        async with self._send_lock:
            return await self._run(
                description, lambda: self._submit_tx(description, call, value)
            )

    async def read_risk_snapshot(self, pool_key: PoolKey) -> RiskSnapshot:
        source = self.hook or self._require(self.keeper, "Hook or keeper")
        result = await self._run(
            "getPoolSnapshot",
            lambda: source.functions.getPoolSnapshot(pool_key.as_tuple()).call(),
        )
        return RiskSnapshot.from_call(result)

    async def read_burst_record(self, pool_id: bytes) -> BurstRecord:
        manager = self._require(self.manager, "JIT manager")
        result = await self._run(
            "bursts", lambda: manager.functions.bursts(pool_id).call()
        )
        return BurstRecord.from_call(result)

    async def trigger_evaluation(self, pool_key: PoolKey) -> TxReceipt:
        keeper = self._require(self.keeper, "Keeper")
        return await self._transact(
            "evaluateAndUpdate",
            keeper.functions.evaluateAndUpdate(pool_key.as_tuple()),
        )

    async def open_burst(
        self,
        pool_key: PoolKey,
        liquidity: int,
        amount0_max: int,
        amount1_max: int,
        operator: str,
        duration: int,
    ) -> TxReceipt:
        manager = self._require(self.manager, "JIT manager")
        return await self._transact(
            "executeBurst",
            manager.functions.executeBurst(
                pool_key.as_tuple(),
                liquidity,
                amount0_max,
                amount1_max,
                Web3.to_checksum_address(operator),
                duration,
            ),
        )

    async def open_flash_funded_burst(
        self,
        borrower: str,
        pool_key: PoolKey,
        liquidity: int,
        amount0_max: int,
        amount1_max: int,
        executor: str,
        executor_data: bytes,
        asset: str,
        amount: int,
        operator: str,
    ) -> TxReceipt:
        contract = self.borrower(borrower)
        params = (
            *pool_key.as_tuple(),
            liquidity,
            amount0_max,
            amount1_max,
            Web3.to_checksum_address(executor),
            executor_data,
            Web3.to_checksum_address(asset),
            amount,
            Web3.to_checksum_address(operator),
        )
        return await self._transact(
            "initiateFlashBurst", contract.functions.initiateFlashBurst(params)
        )

    async def close_burst(self, pool_key: PoolKey, min_out0: int, min_out1: int) -> TxReceipt:
        manager = self._require(self.manager, "JIT manager")
        return await self._transact(
            "settleBurst",
            manager.functions.settleBurst(pool_key.as_tuple(), min_out0, min_out1),
        )

    async def get_update_fee(self, update_data: list[bytes]) -> int:
        pyth = self._require(self.pyth, "Pyth")
        fee = await self._run(
            "getUpdateFee", lambda: pyth.functions.getUpdateFee(update_data).call()
        )
        return int(fee)

    async def submit_update(self, update_data: list[bytes], fee: int) -> TxReceipt:
        pyth = self._require(self.pyth, "Pyth")
        return await self._transact(
            "updatePriceFeeds", pyth.functions.updatePriceFeeds(update_data), value=fee
        )
