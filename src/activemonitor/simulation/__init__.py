"""Concurrent telemetry simulation and shutdown sequencing."""

from activemonitor.simulation.broadcast import Broadcaster, Subscription
from activemonitor.simulation.cancellation import CancellationToken
from activemonitor.simulation.channel import Proposal, ProposalChannel, ProposalSource, Transition
from activemonitor.simulation.config import RNG_SEED_ENV_VAR, SimulationConfig, rng_seed_from_env
from activemonitor.simulation.fault_injector import FaultAlert, FaultInjector, fault_spike_step
from activemonitor.simulation.random_walk import RandomWalkUpdater, random_walk_step
from activemonitor.simulation.session import SimulationSession
from activemonitor.simulation.shutdown import (
    ShutdownPhase,
    ShutdownSequencer,
    is_ramped_down,
    ramp_step,
)
from activemonitor.simulation.supervisor import MachineSupervisor

__all__ = [
    "Broadcaster",
    "CancellationToken",
    "FaultAlert",
    "FaultInjector",
    "MachineSupervisor",
    "Proposal",
    "ProposalChannel",
    "ProposalSource",
    "RNG_SEED_ENV_VAR",
    "RandomWalkUpdater",
    "ShutdownPhase",
    "ShutdownSequencer",
    "SimulationConfig",
    "SimulationSession",
    "Subscription",
    "Transition",
    "fault_spike_step",
    "is_ramped_down",
    "ramp_step",
    "random_walk_step",
    "rng_seed_from_env",
]
