"""Unit tests for EventInterpreter."""

import logging

from eth_abi import encode
from web3 import Web3

from pegguard.src.EventInterpreter import (
    EventInterpreter,
    RiskEvaluated,
    StaleFeedDetected,
)

KEEPER = Web3.to_checksum_address("0x" + "66" * 20)
POOL_ID = b"\x42" * 32
FEED_ID = b"\x17" * 32

EVALUATED_TOPIC = Web3.keccak(text="KeeperEvaluated(bytes32,uint8,bool,uint256,uint256)")
STALE_TOPIC = Web3.keccak(text="StaleFeedDetected(bytes32,bytes32)")


def make_log(topics, data: bytes, index: int = 0) -> dict:
    return {
        "address": KEEPER,
        "topics": [bytes(topic) for topic in topics],
        "data": data,
        "logIndex": index,
        "transactionIndex": 0,
        "transactionHash": b"\x01" * 32,
        "blockHash": b"\x02" * 32,
        "blockNumber": 123,
    }


def evaluated_log(mode: int = 2, index: int = 0) -> dict:
    data = encode(["uint8", "bool", "uint256", "uint256"], [mode, True, 150, 40])
    return make_log([EVALUATED_TOPIC, POOL_ID], data, index)


def stale_log(index: int = 0) -> dict:
    return make_log([STALE_TOPIC, POOL_ID], encode(["bytes32"], [FEED_ID]), index)


class TestDecode:
    """Test receipt decoding."""

    def test_keeper_evaluated(self) -> None:
        events = EventInterpreter().decode({"logs": [evaluated_log()]})
        assert events == [
            RiskEvaluated(
                pool_id=POOL_ID, mode=2, jit_target=True, depeg_bps=150, confidence_bps=40
            )
        ]
        assert events[0].mode_name == "Crisis"

    def test_stale_feed(self) -> None:
        events = EventInterpreter().decode({"logs": [stale_log()]})
        assert events == [StaleFeedDetected(pool_id=POOL_ID, feed_id=FEED_ID)]

    def test_preserves_log_order(self) -> None:
        receipt = {"logs": [stale_log(0), evaluated_log(1, index=1)]}
        events = EventInterpreter().decode(receipt)
        assert [type(event) for event in events] == [StaleFeedDetected, RiskEvaluated]

    def test_unknown_log_skipped(self) -> None:
        """Logs from other contracts are ignored."""
        transfer = Web3.keccak(text="Transfer(address,address,uint256)")
        other = make_log([transfer, b"\x00" * 32, b"\x00" * 32], encode(["uint256"], [1]))
        events = EventInterpreter().decode({"logs": [other, evaluated_log(index=1)]})
        assert len(events) == 1
        assert isinstance(events[0], RiskEvaluated)

    def test_malformed_data_skipped(self) -> None:
        """A matching topic with truncated data does not raise."""
        broken = make_log([EVALUATED_TOPIC, POOL_ID], b"\x00" * 5)
        assert EventInterpreter().decode({"logs": [broken]}) == []

    def test_empty_receipt(self) -> None:
        interpreter = EventInterpreter()
        assert interpreter.decode(None) == []
        assert interpreter.decode({"logs": []}) == []

    def test_unknown_mode_label(self) -> None:
        events = EventInterpreter().decode({"logs": [evaluated_log(mode=9)]})
        assert events[0].mode_name == "Unknown"


class TestLogEvents:
    """Test event log lines."""

    def test_log_lines(self, caplog) -> None:
        receipt = {"logs": [evaluated_log(1), stale_log(index=1)]}
        with caplog.at_level(logging.INFO, logger="pegguard.src.EventInterpreter"):
            EventInterpreter().log_events("keeper:job-1", receipt)

        messages = [record.getMessage() for record in caplog.records]
        assert (
            "[keeper:job-1] evaluated pool mode=Alert jit=True depeg=150bps conf=40bps"
            in messages
        )
        stale = [r for r in caplog.records if "STALE FEED DETECTED" in r.getMessage()]
        assert len(stale) == 1
        assert stale[0].levelno == logging.WARNING
        assert FEED_ID.hex() in stale[0].getMessage()
