"""PegGuardConfig: Load agent settings and job descriptors.

Settings come from a JSON config file when one is given and exists, with
environment variables as the fallback for every field. Example file:

.. code-block:: json

    {
      "rpcUrl": "https://rpc.example",
      "privateKey": "0x...",
      "keeper": {
        "contract": "0xKeeper",
        "pyth": "0xPyth",
        "jobs": [{"id": "usdc-usdt", "pool": {...}, "priceFeedIds": ["0x..."],
                  "pythEndpoint": ["https://a", "https://b"]}]
      },
      "jit": {
        "manager": "0xManager",
        "hook": "0xHook",
        "jobs": [{"pool": {...}, "liquidity": "1000", "amount0Max": "0",
                  "amount1Max": "0", "duration": 900}]
      }
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping, TypeVar

from web3 import Web3

from .BurstController import DEFAULT_MODE_THRESHOLD
from .errors import ConfigurationError
from .JobDescriptor import (
    DEFAULT_SETTLE_BUFFER_SECONDS,
    BurstJob,
    FlashFundingSpec,
    RelayJob,
)
from .PoolKey import DYNAMIC_FEE_FLAG, PoolKey
from .PriceServiceClient import DEFAULT_ENDPOINT

logger = logging.getLogger(__name__)

DEFAULT_KEEPER_INTERVAL_MS = 60000
DEFAULT_JIT_INTERVAL_MS = 45000
DEFAULT_ENV_LIQUIDITY = "1000000000000000000"
DEFAULT_ENV_DURATION = 900

J = TypeVar("J")


@dataclass(frozen=True)
class PegGuardSettings:
    """Validated agent settings.

    :ivar rpc_url: JSON-RPC endpoint.
    :ivar private_key: Operator private key.
    :ivar keeper_address: Keeper contract address.
    :ivar pyth_address: Oracle contract address.
    :ivar manager_address: JIT manager contract address.
    :ivar hook_address: Hook contract address.
    :ivar relay_jobs: Keeper relay jobs.
    :ivar burst_jobs: JIT burst jobs.
    :ivar keeper_interval: Default relay tick period in seconds.
    :ivar jit_interval: Default burst tick period in seconds.
    :ivar mode_threshold: Default burst mode threshold.
    """

    rpc_url: str | None = None
    private_key: str | None = field(default=None, repr=False)
    keeper_address: str | None = None
    pyth_address: str | None = None
    manager_address: str | None = None
    hook_address: str | None = None
    relay_jobs: tuple[RelayJob, ...] = ()
    burst_jobs: tuple[BurstJob, ...] = ()
    keeper_interval: float = DEFAULT_KEEPER_INTERVAL_MS / 1000
    jit_interval: float = DEFAULT_JIT_INTERVAL_MS / 1000
    mode_threshold: int = DEFAULT_MODE_THRESHOLD

    def _require(self, fields: dict[str, str | None], jobs: tuple, agent: str) -> None:
        missing = [name for name, value in fields.items() if not value]
        if missing:
            raise ConfigurationError(
                f"{agent} configuration missing {' / '.join(missing)}"
            )
        if not jobs:
            raise ConfigurationError(f"No {agent} jobs configured")

    def require_keeper(self) -> None:
        """Check the keeper agent can start.

        :raises ConfigurationError: If credentials, addresses or jobs are missing.
        """
        self._require(
            {
                "RPC_URL": self.rpc_url,
                "PRIVATE_KEY": self.private_key,
                "PEG_GUARD_KEEPER": self.keeper_address,
                "PEG_GUARD_PYTH": self.pyth_address,
            },
            self.relay_jobs,
            "keeper",
        )

    def require_jit(self) -> None:
        """Check the JIT agent can start.

        :raises ConfigurationError: If credentials, addresses or jobs are missing.
        """
        self._require(
            {
                "RPC_URL": self.rpc_url,
                "PRIVATE_KEY": self.private_key,
                "PEG_GUARD_JIT_MANAGER": self.manager_address,
                "PEG_GUARD_HOOK": self.hook_address,
            },
            self.burst_jobs,
            "JIT",
        )


def load_config_file(config_path: str | None) -> dict[str, Any] | None:
    """Read the JSON config file.

    :param config_path: Path to the config file, or None.
    :returns: Parsed config, or None if no path was given or the file is absent.
    :raises ConfigurationError: If the file exists but cannot be parsed.
    """
    if not config_path:
        return None

    resolved = Path(config_path).resolve()
    if not resolved.exists():
        logger.warning(f"No config file at {resolved}, falling back to env vars")
        return None

    try:
        with open(resolved, "r") as file:
            parsed = json.load(file)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Failed to parse {resolved}: {e}") from e

    if not isinstance(parsed, dict):
        raise ConfigurationError(f"Config {resolved} must be a JSON object")
    return parsed


def _parse_endpoints(value: Any, default: str) -> tuple[str, ...]:
    if value is None:
        return (default,)
    if isinstance(value, str):
        return (value,)
    endpoints = tuple(str(e).strip() for e in value if str(e).strip())
    return endpoints or (default,)


def _interval_seconds(value: Any) -> float | None:
    return None if value is None else float(value) / 1000


def _parse_bytes(value: str | None) -> bytes:
    if not value:
        return b""
    return bytes.fromhex(value[2:] if value.startswith("0x") else value)


def _parse_relay_job(
    job: Mapping[str, Any], idx: int, default_endpoint: str
) -> RelayJob:
    feed_ids = tuple(str(f).strip() for f in job.get("priceFeedIds", []) if str(f).strip())
    return RelayJob(
        label=job.get("id") or f"job-{idx + 1}",
        pool=PoolKey.from_config(job["pool"]),
        feed_ids=feed_ids,
        endpoints=_parse_endpoints(job.get("pythEndpoint"), default_endpoint),
        interval=_interval_seconds(job.get("intervalMs")),
    )


def _parse_flash_funding(cfg: Mapping[str, Any] | None) -> FlashFundingSpec | None:
    if not cfg:
        return None
    executor = cfg.get("executor")
    return FlashFundingSpec(
        borrower=Web3.to_checksum_address(cfg["address"]),
        asset=Web3.to_checksum_address(cfg["asset"]),
        amount=int(cfg["amount"]),
        executor=Web3.to_checksum_address(executor) if executor else None,
        executor_data=_parse_bytes(cfg.get("executorData")),
    )


def _parse_burst_job(job: Mapping[str, Any], idx: int) -> BurstJob:
    threshold = job.get("modeThreshold")
    return BurstJob(
        label=job.get("id") or f"jit-{idx + 1}",
        pool=PoolKey.from_config(job["pool"]),
        liquidity=int(job["liquidity"]),
        amount0_max=int(job["amount0Max"]),
        amount1_max=int(job["amount1Max"]),
        duration=int(job.get("duration") or 0),
        mode_threshold=None if threshold is None else int(threshold),
        settle_buffer=float(job.get("settleBufferSec", DEFAULT_SETTLE_BUFFER_SECONDS)),
        interval=_interval_seconds(job.get("intervalMs")),
        flash_funding=_parse_flash_funding(job.get("flashBorrower")),
        min_out0=int(job.get("minOut0") or 0),
        min_out1=int(job.get("minOut1") or 0),
    )


def _build_jobs(
    raw_jobs: list[Mapping[str, Any]], parse: Callable[[Mapping[str, Any], int], J]
) -> tuple[J, ...]:
    """Parse config jobs, dropping (and logging) invalid ones."""
    jobs: list[J] = []
    for idx, raw in enumerate(raw_jobs):
        try:
            jobs.append(parse(raw, idx))
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            label = raw.get("id") if isinstance(raw, Mapping) else None
            logger.error(f"Invalid job #{idx + 1} ({label or 'no id'}): {e}")
    return tuple(jobs)


def _env_pool(env: Mapping[str, str]) -> PoolKey | None:
    currency0 = env.get("POOL_CURRENCY0")
    currency1 = env.get("POOL_CURRENCY1")
    tick_spacing = env.get("POOL_TICK_SPACING")
    hook = env.get("PEG_GUARD_HOOK")
    if not currency0 or not currency1 or not tick_spacing or not hook:
        return None

    fee = env.get("POOL_KEY_FEE")
    return PoolKey(
        currency0=currency0,
        currency1=currency1,
        fee=fee or DYNAMIC_FEE_FLAG,
        tick_spacing=tick_spacing,
        hooks=hook,
    )


def build_relay_jobs(
    config: Mapping[str, Any] | None,
    env: Mapping[str, str],
    default_endpoint: str = DEFAULT_ENDPOINT,
) -> tuple[RelayJob, ...]:
    """Build relay jobs from the config file, else from the environment.

    :param config: Parsed config file or None.
    :param env: Environment mapping.
    :param default_endpoint: Endpoint for jobs without one.
    :returns: Valid relay jobs.
    """
    raw_jobs = ((config or {}).get("keeper") or {}).get("jobs") or []
    if raw_jobs:
        return _build_jobs(
            raw_jobs, lambda job, idx: _parse_relay_job(job, idx, default_endpoint)
        )

    feed_ids = env.get("PRICE_FEED_IDS")
    try:
        pool = _env_pool(env)
    except ValueError as e:
        logger.error(f"Invalid pool in environment: {e}")
        return ()
    if pool is None or not feed_ids:
        return ()

    return (
        RelayJob(
            label="env",
            pool=pool,
            feed_ids=tuple(f.strip() for f in feed_ids.split(",") if f.strip()),
            endpoints=(default_endpoint,),
        ),
    )


def build_burst_jobs(
    config: Mapping[str, Any] | None, env: Mapping[str, str]
) -> tuple[BurstJob, ...]:
    """Build burst jobs from the config file, else from the environment.

    :param config: Parsed config file or None.
    :param env: Environment mapping.
    :returns: Valid burst jobs.
    """
    raw_jobs = ((config or {}).get("jit") or {}).get("jobs") or []
    if raw_jobs:
        return _build_jobs(raw_jobs, _parse_burst_job)

    try:
        pool = _env_pool(env)
        if pool is None:
            return ()
        job = BurstJob(
            label="env",
            pool=pool,
            liquidity=int(env.get("JIT_LIQUIDITY") or DEFAULT_ENV_LIQUIDITY),
            amount0_max=int(env.get("JIT_AMOUNT0_MAX") or 0),
            amount1_max=int(env.get("JIT_AMOUNT1_MAX") or 0),
            duration=int(env.get("JIT_DURATION") or DEFAULT_ENV_DURATION),
        )
    except ValueError as e:
        logger.error(f"Invalid JIT job in environment: {e}")
        return ()
    return (job,)


def load_settings(config_path: str | None, env: Mapping[str, str]) -> PegGuardSettings:
    """Load settings for both agents.

    :param config_path: Optional JSON config path.
    :param env: Environment mapping (usually ``os.environ``).
    :returns: Settings; call ``require_keeper``/``require_jit`` before use.
    :raises ConfigurationError: If the config file or a numeric env var is invalid.
    """
    config = load_config_file(config_path) or {}
    keeper = config.get("keeper") or {}
    jit = config.get("jit") or {}

    try:
        keeper_interval = int(env.get("KEEPER_INTERVAL_MS") or DEFAULT_KEEPER_INTERVAL_MS)
        jit_interval = int(env.get("LOOP_INTERVAL_MS") or DEFAULT_JIT_INTERVAL_MS)
        mode_threshold = int(env.get("JIT_MODE_THRESHOLD") or DEFAULT_MODE_THRESHOLD)
    except ValueError as e:
        raise ConfigurationError(f"Invalid numeric environment variable: {e}") from e

    default_endpoint = env.get("PYTH_ENDPOINT") or DEFAULT_ENDPOINT

    return PegGuardSettings(
        rpc_url=config.get("rpcUrl") or env.get("RPC_URL"),
        private_key=config.get("privateKey") or env.get("PRIVATE_KEY"),
        keeper_address=keeper.get("contract") or env.get("PEG_GUARD_KEEPER"),
        pyth_address=keeper.get("pyth") or env.get("PEG_GUARD_PYTH"),
        manager_address=jit.get("manager") or env.get("PEG_GUARD_JIT_MANAGER"),
        hook_address=jit.get("hook") or env.get("PEG_GUARD_HOOK"),
        relay_jobs=build_relay_jobs(config, env, default_endpoint),
        burst_jobs=build_burst_jobs(config, env),
        keeper_interval=keeper_interval / 1000,
        jit_interval=jit_interval / 1000,
        mode_threshold=mode_threshold,
    )
