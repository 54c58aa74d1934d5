"""Unit tests for RiskSnapshot and BurstRecord parsing."""

from pegguard.src.RiskSnapshot import BurstRecord, Mode, RiskSnapshot


class TestMode:
    def test_labels(self) -> None:
        assert Mode.label(0) == "Calm"
        assert Mode.label(1) == "Alert"
        assert Mode.label(2) == "Crisis"

    def test_unknown_label(self) -> None:
        assert Mode.label(7) == "Unknown"

    def test_ordering(self) -> None:
        assert Mode.CALM < Mode.ALERT < Mode.CRISIS
        assert Mode.CRISIS >= 2


class TestRiskSnapshot:
    def test_from_call(self) -> None:
        """Positional getPoolSnapshot output should be parsed field by field."""
        result = (
            (b"\x01" * 32, b"\x02" * 32, 3000, 10000, 100),
            (2, True, 150, 40, 9000, 10**18, 5, 6),
        )
        snapshot = RiskSnapshot.from_call(result)

        assert snapshot.mode == 2
        assert snapshot.config.price_feed_id0 == b"\x01" * 32
        assert snapshot.config.max_fee == 10000
        assert snapshot.state.jit_liquidity_active is True
        assert snapshot.state.last_depeg_bps == 150
        assert snapshot.state.last_confidence_bps == 40
        assert snapshot.state.last_override_fee == 9000
        assert snapshot.state.total_rebates == 6


class TestBurstRecord:
    def test_from_call(self) -> None:
        record = BurstRecord.from_call((12, "0x" + "ab" * 20, 1000, 1700000000, True))
        assert record.token_id == 12
        assert record.liquidity == 1000
        assert record.expiry == 1700000000
        assert record.active is True

    def test_inactive(self) -> None:
        record = BurstRecord.inactive()
        assert record.active is False
        assert record.expiry == 0
