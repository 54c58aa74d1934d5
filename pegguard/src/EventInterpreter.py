"""EventInterpreter: Decode keeper events from evaluation receipts for logging.

Decoding is advisory. Logs emitted by other contracts, or that fail to decode,
are skipped and never change the outcome of a cycle.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable

from web3 import Web3
from web3.exceptions import MismatchedABI

from .ContractUtility import ContractUtility
from .errors import EventDecodeFailure
from .RiskSnapshot import Mode

if TYPE_CHECKING:
    from web3.contract import Contract

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RiskEvaluated:
    pool_id: bytes
    mode: int
    jit_target: bool
    depeg_bps: int
    confidence_bps: int

    @property
    def mode_name(self) -> str:
        return Mode.label(self.mode)


@dataclass(frozen=True)
class StaleFeedDetected:
    pool_id: bytes
    feed_id: bytes


KeeperEvent = RiskEvaluated | StaleFeedDetected


class EventInterpreter:
    """Decodes KeeperEvaluated and StaleFeedDetected logs.

    :ivar contract: Contract binding carrying the keeper event ABIs.
    """

    EVENT_NAMES = ("KeeperEvaluated", "StaleFeedDetected")

    def __init__(self, contract: Contract | None = None) -> None:
        """Initialize the interpreter.

        :param contract: Keeper binding; an offline binding of the bundled
            keeper ABI is used when omitted.
        """
        if contract is None:
            contract = Web3().eth.contract(abi=ContractUtility.get_abi("PegGuardKeeper"))
        self.contract = contract

    def _decode_log(self, log: Any) -> KeeperEvent:
        """Decode a single log entry.

        :raises EventDecodeFailure: If no known event matches the log.
        """
        for name in self.EVENT_NAMES:
            try:
                decoded = getattr(self.contract.events, name)().process_log(log)
            except MismatchedABI:
                continue
            except Exception as e:
                raise EventDecodeFailure(f"{name} decode failed: {e}") from e

            args = decoded["args"]
            if name == "KeeperEvaluated":
                return RiskEvaluated(
                    pool_id=bytes(args["poolId"]),
                    mode=int(args["targetMode"]),
                    jit_target=bool(args["jitTarget"]),
                    depeg_bps=int(args["depegBps"]),
                    confidence_bps=int(args["confidenceBps"]),
                )
            return StaleFeedDetected(
                pool_id=bytes(args["poolId"]), feed_id=bytes(args["feedId"])
            )
        raise EventDecodeFailure("log does not match a keeper event")

    def decode(self, receipt: Any) -> list[KeeperEvent]:
        """Decode every recognized keeper event in a receipt.

        :param receipt: Transaction receipt with a ``logs`` list.
        :returns: Decoded events in log order.
        """
        events: list[KeeperEvent] = []
        logs: Iterable[Any] = receipt.get("logs", []) if receipt else []
        for log in logs:
            try:
                events.append(self._decode_log(log))
            except EventDecodeFailure as e:
                logger.debug(f"Skipping log: {e}")
        return events

    def log_events(self, label: str, receipt: Any) -> list[KeeperEvent]:
        """Decode a receipt's events and log them under a job label.

        :param label: Job label for the log prefix.
        :param receipt: Transaction receipt.
        :returns: Decoded events.
        """
        events = self.decode(receipt)
        for event in events:
            if isinstance(event, RiskEvaluated):
                logger.info(
                    f"[{label}] evaluated pool mode={event.mode_name} "
                    f"jit={event.jit_target} depeg={event.depeg_bps}bps "
                    f"conf={event.confidence_bps}bps"
                )
            else:
                logger.warning(
                    f"[{label}] STALE FEED DETECTED: poolId=0x{event.pool_id.hex()} "
                    f"feedId=0x{event.feed_id.hex()}"
                )
        return events
