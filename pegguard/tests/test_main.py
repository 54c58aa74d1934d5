"""Unit tests for the CLI entry point."""

import logging
import sys

import pytest

from pegguard import main as cli

USDC = "0x" + "11" * 20
USDT = "0x" + "22" * 20
HOOK = "0x" + "33" * 20
VALID_KEY = "0x" + "01" * 32

ENV_VARS = (
    "PEG_GUARD_CONFIG", "RPC_URL", "PRIVATE_KEY", "PEG_GUARD_KEEPER", "PEG_GUARD_PYTH",
    "PEG_GUARD_JIT_MANAGER", "PEG_GUARD_HOOK", "PYTH_ENDPOINT", "KEEPER_INTERVAL_MS",
    "LOOP_INTERVAL_MS", "JIT_MODE_THRESHOLD", "POOL_CURRENCY0", "POOL_CURRENCY1",
    "POOL_TICK_SPACING", "POOL_KEY_FEE", "PRICE_FEED_IDS", "JIT_LIQUIDITY",
    "JIT_AMOUNT0_MAX", "JIT_AMOUNT1_MAX", "JIT_DURATION", "MAX_RETRIES",
    "RETRY_DELAY_SEC", "SETTLE_DELAY_SEC",
)


@pytest.fixture
def run_cli(monkeypatch):
    """Run main() with a clean environment and the given args and env vars."""
    monkeypatch.setattr(cli, "load_dotenv", lambda: None)
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    def run(*args: str, **env: str) -> None:
        for name, value in env.items():
            monkeypatch.setenv(name, value)
        monkeypatch.setattr(sys, "argv", ["pegguard", *args])
        cli.main()

    return run


def jit_env(**overrides: str) -> dict[str, str]:
    env = {
        "RPC_URL": "http://localhost:8545",
        "PRIVATE_KEY": VALID_KEY,
        "PEG_GUARD_JIT_MANAGER": "0x" + "63" * 20,
        "PEG_GUARD_HOOK": HOOK,
        "POOL_CURRENCY0": USDC,
        "POOL_CURRENCY1": USDT,
        "POOL_TICK_SPACING": "1",
    }
    env.update(overrides)
    return env


def error_messages(caplog) -> list[str]:
    return [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR]


class TestStartupFailures:
    """Startup errors log a diagnostic and exit 1 before scheduling."""

    def test_missing_credentials(self, run_cli, caplog, monkeypatch) -> None:
        monkeypatch.setattr(cli.asyncio, "run", pytest.fail)
        env = jit_env()
        del env["RPC_URL"]
        del env["PRIVATE_KEY"]

        with pytest.raises(SystemExit) as exc_info:
            run_cli("jit", **env)

        assert exc_info.value.code == 1
        assert any("missing RPC_URL / PRIVATE_KEY" in m for m in error_messages(caplog))

    def test_no_jobs(self, run_cli, caplog, monkeypatch) -> None:
        monkeypatch.setattr(cli.asyncio, "run", pytest.fail)
        with pytest.raises(SystemExit) as exc_info:
            run_cli(
                "keeper",
                RPC_URL="http://localhost:8545",
                PRIVATE_KEY=VALID_KEY,
                PEG_GUARD_KEEPER="0x" + "61" * 20,
                PEG_GUARD_PYTH="0x" + "62" * 20,
            )

        assert exc_info.value.code == 1
        assert any("No keeper jobs configured" in m for m in error_messages(caplog))

    def test_malformed_private_key(self, run_cli, caplog, monkeypatch) -> None:
        monkeypatch.setattr(cli.asyncio, "run", pytest.fail)
        with pytest.raises(SystemExit) as exc_info:
            run_cli("jit", **jit_env(PRIVATE_KEY="not-a-key"))

        assert exc_info.value.code == 1
        assert any("Invalid PRIVATE_KEY" in m for m in error_messages(caplog))

    def test_invalid_numeric_env(self, run_cli) -> None:
        with pytest.raises(SystemExit) as exc_info:
            run_cli("jit", **jit_env(LOOP_INTERVAL_MS="often"))
        assert exc_info.value.code == 1

    def test_negative_retries_rejected(self, run_cli) -> None:
        """argparse exits with status 2 on invalid arguments."""
        with pytest.raises(SystemExit) as exc_info:
            run_cli("jit", "--max-retries", "-1", **jit_env())
        assert exc_info.value.code == 2


class TestStartup:
    def test_valid_configuration_runs_agent(self, run_cli, monkeypatch) -> None:
        started = []

        def fake_run(coro) -> None:
            started.append(coro.__qualname__)
            coro.close()

        monkeypatch.setattr(cli.asyncio, "run", fake_run)
        run_cli("jit", "--max-retries", "1", **jit_env())

        assert started == ["PegGuard.run"]
