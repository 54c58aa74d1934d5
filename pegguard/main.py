#!/usr/bin/env python3
"""PegGuard agents.

Keeper: relays oracle price updates on-chain and triggers the hook's risk
evaluation for each configured pool.
JIT: opens a temporary concentrated liquidity burst when a pool's risk mode
reaches its threshold and settles it after expiry.

Configure with a JSON file (PEG_GUARD_CONFIG) or env vars. See .env.example.
"""

import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

from .src.errors import ConfigurationError
from .src.OracleRelay import DEFAULT_SETTLE_DELAY_SECONDS
from .src.PegGuard import AGENTS, PegGuard
from .src.PegGuardConfig import PegGuardSettings, load_settings
from .src.RetryPolicy import RetryPolicy

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def log_settings(agent: str, settings: PegGuardSettings, args: argparse.Namespace) -> None:
    """Log the startup configuration banner."""
    logger.info("=" * 60)
    logger.info(f"PegGuard {agent} agent")
    logger.info("=" * 60)
    logger.info(f"RPC URL:           {settings.rpc_url}")
    if agent == "keeper":
        logger.info(f"Keeper:            {settings.keeper_address}")
        logger.info(f"Pyth:              {settings.pyth_address}")
        logger.info(f"Default Interval:  {settings.keeper_interval:g}s")
        for job in settings.relay_jobs:
            logger.info(
                f"Job {job.label}: pool=0x{job.pool.pool_id.hex()} "
                f"feeds={len(job.feed_ids)} endpoints={', '.join(job.endpoints)}"
            )
    else:
        logger.info(f"JIT Manager:       {settings.manager_address}")
        logger.info(f"Hook:              {settings.hook_address}")
        logger.info(f"Default Interval:  {settings.jit_interval:g}s")
        logger.info(f"Mode Threshold:    {settings.mode_threshold}")
        for job in settings.burst_jobs:
            funding = "flash" if job.flash_funding else "direct"
            logger.info(
                f"Job {job.label}: pool=0x{job.pool_id.hex()} "
                f"liquidity={job.liquidity} duration={job.duration}s funding={funding}"
            )
    logger.info(f"Max Retries:       {args.max_retries}")
    logger.info(f"Retry Delay:       {args.retry_delay:g}s")
    logger.info("=" * 60)


def main() -> None:
    """Main entry point for the PegGuard agents CLI."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="PegGuard agents: oracle keeper and JIT liquidity bursts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Relay oracle updates and trigger evaluations
  python -m pegguard.main keeper --config peg-guard.json

  # Monitor risk mode and manage JIT bursts
  python -m pegguard.main jit --config peg-guard.json

Environment variables (CLI args take precedence, config file over env):
  PEG_GUARD_CONFIG, RPC_URL, PRIVATE_KEY, PEG_GUARD_KEEPER, PEG_GUARD_PYTH,
  PEG_GUARD_JIT_MANAGER, PEG_GUARD_HOOK, PYTH_ENDPOINT, KEEPER_INTERVAL_MS,
  LOOP_INTERVAL_MS, JIT_MODE_THRESHOLD, POOL_CURRENCY0, POOL_CURRENCY1,
  POOL_TICK_SPACING, POOL_KEY_FEE, PRICE_FEED_IDS, JIT_LIQUIDITY,
  JIT_AMOUNT0_MAX, JIT_AMOUNT1_MAX, JIT_DURATION, MAX_RETRIES,
  RETRY_DELAY_SEC, SETTLE_DELAY_SEC
""",
    )

    parser.add_argument(
        "agent",
        choices=AGENTS,
        help="Agent to run",
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to the JSON config file",
        default=os.environ.get("PEG_GUARD_CONFIG"),
    )

    parser.add_argument(
        "--max-retries",
        dest="max_retries",
        type=int,
        help="Retries per cycle after the first attempt (default: 3)",
        default=int(os.environ.get("MAX_RETRIES") or RetryPolicy.DEFAULT_MAX_ATTEMPTS),
    )

    parser.add_argument(
        "--retry-delay",
        dest="retry_delay",
        type=float,
        help="Seconds between retries (default: 5)",
        default=float(os.environ.get("RETRY_DELAY_SEC") or RetryPolicy.DEFAULT_DELAY_SECONDS),
    )

    parser.add_argument(
        "--settle-delay",
        dest="settle_delay",
        type=float,
        help="Seconds between oracle update and evaluation (default: 1)",
        default=float(os.environ.get("SETTLE_DELAY_SEC") or DEFAULT_SETTLE_DELAY_SECONDS),
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    args = parser.parse_args()

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.max_retries < 0:
        parser.error("--max-retries must be at least 0")

    if args.retry_delay < 0:
        parser.error("--retry-delay must be at least 0")

    try:
        settings = load_settings(args.config, os.environ)
        guard = PegGuard(
            agent=args.agent,
            settings=settings,
            retry_policy=RetryPolicy(max_attempts=args.max_retries, delay=args.retry_delay),
            settle_delay=args.settle_delay,
        )
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    log_settings(args.agent, settings, args)

    try:
        asyncio.run(guard.run())
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
