"""Decides when to run a security analysis and keeps it single-flight.

The coordinator snapshots a baseline (ids of online devices and their
count) whenever it dispatches an analysis. Later device lists are
compared against that baseline: a risky device it has not seen, or
enough additional online devices, triggers the next analysis.
"""

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from netsentinel.network.models import Device

logger = logging.getLogger(__name__)

DEFAULT_NEW_DEVICE_THRESHOLD = 3

Analyzer = Callable[[Sequence[Device]], Awaitable[str]]


class TriggerState(enum.StrEnum):
    idle = "idle"
    dispatching = "dispatching"


class TriggerReason(enum.StrEnum):
    critical_device = "critical_device"
    threshold = "threshold"


@dataclass(frozen=True)
class Baseline:
    """Device population at the moment of the last dispatched analysis."""

    seen_device_ids: frozenset[str] = field(default_factory=frozenset)
    online_count: int = 0


@dataclass(frozen=True)
class TriggerDecision:
    reason: TriggerReason
    device: Device | None = None  # the risky device, for critical_device
    new_online: int = 0


class AnalysisCoordinator:
    """Idle -> Dispatching -> Idle; requests are ignored while dispatching."""

    def __init__(
        self,
        analyzer: Analyzer,
        threshold: int = DEFAULT_NEW_DEVICE_THRESHOLD,
    ) -> None:
        if threshold < 1:
            raise ValueError(f"threshold must be at least 1, got {threshold}")
        self.analyzer = analyzer
        self.threshold = threshold
        self.baseline = Baseline()
        self.state = TriggerState.idle
        self.latest_report: str | None = None
        self.report_time: datetime | None = None
        self._callbacks: list[Callable[[str], None]] = []

    @property
    def in_flight(self) -> bool:
        return self.state is TriggerState.dispatching

    def on_report(self, callback: Callable[[str], None]) -> None:
        """Register a callback for completed reports."""
        self._callbacks.append(callback)

    def evaluate(
        self,
        devices: Sequence[Device],
        *,
        monitoring: bool,
        auto_analyze: bool,
    ) -> TriggerDecision | None:
        """Check the trigger rules against the baseline. Does not dispatch."""
        if not monitoring or not auto_analyze or self.in_flight or not devices:
            return None

        online = [d for d in devices if d.is_online]
        for device in online:
            if device.is_risky and device.id not in self.baseline.seen_device_ids:
                return TriggerDecision(reason=TriggerReason.critical_device, device=device)

        delta = len(online) - self.baseline.online_count
        if delta >= self.threshold:
            return TriggerDecision(reason=TriggerReason.threshold, new_online=delta)

        return None

    def dispatch(self, devices: Sequence[Device]) -> asyncio.Task[str] | None:
        """Start an analysis of ``devices`` unless one is already running.

        The baseline is replaced and the state flipped before the task is
        created, so the same population cannot trigger a second call while
        this one is outstanding. Must be called from the event loop.
        """
        if self.in_flight:
            logger.debug("Analysis already in flight, ignoring dispatch")
            return None

        snapshot = list(devices)
        online = [d for d in snapshot if d.is_online]
        self.baseline = Baseline(
            seen_device_ids=frozenset(d.id for d in online),
            online_count=len(online),
        )
        self.state = TriggerState.dispatching
        logger.info("Dispatching analysis of %d device(s)", len(snapshot))
        return asyncio.create_task(self._run(snapshot))

    async def _run(self, devices: list[Device]) -> str:
        try:
            report = await self.analyzer(devices)
            self.latest_report = report
            self.report_time = datetime.now(UTC)
            for cb in self._callbacks:
                cb(report)
            return report
        finally:
            self.state = TriggerState.idle
