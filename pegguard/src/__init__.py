"""
PegGuard agents - keeper relay and JIT burst automation

This module provides the off-chain agents for a PegGuard pool:
- PoolKey: Pool identity and deterministic pool ID derivation
- OracleRelay: Oracle update relay with endpoint failover
- BurstController: Stateless JIT burst open/settle decisions
- RetryPolicy: Bounded fixed-delay retries per cycle
- Scheduler: Independent fixed-period loop per job
- EventInterpreter: Keeper event decoding for logs
- PegGuard: Agent orchestrator
"""

from .BurstController import BurstAction, BurstController, decide_burst_action
from .EventInterpreter import EventInterpreter, RiskEvaluated, StaleFeedDetected
from .JobDescriptor import BurstJob, FlashFundingSpec, RelayJob
from .OracleRelay import OracleRelay
from .PegGuard import PegGuard
from .PoolKey import PoolKey, derive_pool_id
from .RetryPolicy import RetryPolicy, RetryState
from .RiskSnapshot import BurstRecord, Mode, RiskSnapshot
from .Scheduler import ScheduledJob, Scheduler

__all__ = [
    "BurstAction",
    "BurstController",
    "BurstJob",
    "BurstRecord",
    "EventInterpreter",
    "FlashFundingSpec",
    "Mode",
    "OracleRelay",
    "PegGuard",
    "PoolKey",
    "RelayJob",
    "RetryPolicy",
    "RetryState",
    "RiskEvaluated",
    "RiskSnapshot",
    "ScheduledJob",
    "Scheduler",
    "StaleFeedDetected",
    "decide_burst_action",
    "derive_pool_id",
]
