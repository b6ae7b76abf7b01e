"""Live monitoring: drives simulator ticks and auto-triggered analysis.

One MonitorService per application. Its timer task ticks the simulator
every ``tick_interval`` seconds, records events in a bounded activity
log, and hands each device list to the analysis coordinator.
"""

import asyncio
import enum
import itertools
import logging
import random
from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from netsentinel.analysis.client import analyze_network_security
from netsentinel.analysis.trigger import (
    AnalysisCoordinator,
    Analyzer,
    TriggerDecision,
    TriggerReason,
)
from netsentinel.config import Settings
from netsentinel.network.models import Device, EventType, NetworkEvent
from netsentinel.network.simulator import NetworkSimulator

logger = logging.getLogger(__name__)


class LogSeverity(enum.StrEnum):
    info = "info"
    alert = "alert"
    success = "success"
    warning = "warning"


@dataclass(frozen=True)
class LogEntry:
    id: int
    message: str
    severity: LogSeverity
    time: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class NetworkStats:
    total_devices: int
    online_devices: int
    offline_devices: int
    risky_devices: int  # online with high or critical risk
    open_ports: int
    vulnerabilities: int


def compute_stats(devices: Sequence[Device]) -> NetworkStats:
    online = [d for d in devices if d.is_online]
    return NetworkStats(
        total_devices=len(devices),
        online_devices=len(online),
        offline_devices=len(devices) - len(online),
        risky_devices=sum(1 for d in online if d.is_risky),
        open_ports=sum(len(d.open_ports) for d in devices),
        vulnerabilities=sum(
            1 for d in devices for p in d.open_ports if p.vulnerability
        ),
    )


class AnalysisUnavailable(Exception):
    """A manual analysis request was refused."""


class MonitorService:
    """Owns the simulator, the coordinator, and the activity log."""

    def __init__(
        self,
        simulator: NetworkSimulator,
        coordinator: AnalysisCoordinator,
        tick_interval: float = 1.5,
        auto_analyze: bool = False,
        log_capacity: int = 50,
    ) -> None:
        self.simulator = simulator
        self.coordinator = coordinator
        self.tick_interval = tick_interval
        self.auto_analyze = auto_analyze
        self.devices: list[Device] = []
        self._log: deque[LogEntry] = deque(maxlen=log_capacity)
        self._log_ids = itertools.count(1)
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._analysis_tasks: set[asyncio.Task[str]] = set()
        self.coordinator.on_report(self._handle_report)

    @classmethod
    def from_settings(cls, cfg: Settings, analyzer: Analyzer | None = None) -> "MonitorService":
        """Wire a service from configuration, defaulting to the Gemini analyzer."""
        rng = random.Random(cfg.random_seed)
        simulator = NetworkSimulator(
            cfg.subnet,
            rng=rng,
            device_cap=cfg.device_cap,
            discovery_probability=cfg.discovery_probability,
            disconnect_probability=cfg.disconnect_probability,
            reconnect_probability=cfg.reconnect_probability,
        )
        if analyzer is None:

            async def gemini_analyzer(devices: Sequence[Device]) -> str:
                return await analyze_network_security(
                    devices,
                    cfg.subnet,
                    api_key=cfg.gemini_api_key,
                    model=cfg.gemini_model,
                    base_url=cfg.gemini_base_url,
                    temperature=cfg.gemini_temperature,
                    timeout=cfg.analysis_timeout,
                )

            analyzer = gemini_analyzer

        coordinator = AnalysisCoordinator(analyzer, threshold=cfg.new_device_threshold)
        return cls(
            simulator,
            coordinator,
            tick_interval=cfg.tick_interval,
            auto_analyze=cfg.auto_analyze,
            log_capacity=cfg.log_capacity,
        )

    @property
    def monitoring(self) -> bool:
        return self._running

    @property
    def logs(self) -> list[LogEntry]:
        """Activity log, newest first."""
        return list(self._log)

    def stats(self) -> NetworkStats:
        return compute_stats(self.devices)

    def add_log(self, message: str, severity: LogSeverity = LogSeverity.info) -> LogEntry:
        entry = LogEntry(id=next(self._log_ids), message=message, severity=severity)
        self._log.appendleft(entry)
        return entry

    async def start(self) -> None:
        """Tick once immediately, then every ``tick_interval`` seconds."""
        if self._running:
            return
        logger.info("Starting network monitoring (interval=%.1fs)", self.tick_interval)
        self._running = True
        self.add_log("Live network monitoring started...", LogSeverity.success)
        self.run_tick()
        self._task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        """Stop ticking. An in-flight analysis is left to finish."""
        if not self._running:
            return
        logger.info("Stopping network monitoring")
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self.add_log("Monitoring stopped.", LogSeverity.alert)

    async def shutdown(self) -> None:
        """Stop monitoring and wait for outstanding analyses."""
        await self.stop()
        if self._analysis_tasks:
            await asyncio.gather(*self._analysis_tasks, return_exceptions=True)

    def set_auto_analyze(self, enabled: bool) -> None:
        self.auto_analyze = enabled
        logger.info("Auto-analysis %s", "enabled" if enabled else "disabled")

    def request_analysis(self) -> asyncio.Task[str]:
        """Start a manual analysis of the current device list.

        Raises:
            AnalysisUnavailable: If monitoring is off, no devices are known,
                or an analysis is already running.
        """
        if not self._running:
            raise AnalysisUnavailable("Monitoring is not running")
        if not self.devices:
            raise AnalysisUnavailable("No devices discovered yet")
        task = self._dispatch(self.devices)
        if task is None:
            raise AnalysisUnavailable("An analysis is already in progress")
        return task

    def run_tick(self) -> list[NetworkEvent]:
        """Run one simulator tick and evaluate the analysis triggers."""
        devices, events = self.simulator.tick()
        self.devices = devices
        for event in events:
            severity = (
                LogSeverity.alert if event.type == EventType.device_lost else LogSeverity.success
            )
            self.add_log(event.message, severity)

        decision = self.coordinator.evaluate(
            devices, monitoring=self._running, auto_analyze=self.auto_analyze
        )
        if decision is not None:
            self._log_trigger(decision)
            self._dispatch(devices)
        return events

    async def _poll_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self.tick_interval)

            try:
                self.run_tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Simulation tick error")

    def _dispatch(self, devices: Sequence[Device]) -> asyncio.Task[str] | None:
        task = self.coordinator.dispatch(devices)
        if task is not None:
            self._analysis_tasks.add(task)
            task.add_done_callback(self._analysis_done)
        return task

    def _analysis_done(self, task: asyncio.Task[str]) -> None:
        self._analysis_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Security analysis failed", exc_info=exc)
            self.add_log("Security analysis failed.", LogSeverity.alert)

    def _log_trigger(self, decision: TriggerDecision) -> None:
        if decision.reason == TriggerReason.critical_device and decision.device is not None:
            message = (
                f"AUTO TRIGGER: Critical device ({decision.device.ip}) detected. "
                "Starting analysis..."
            )
        else:
            message = (
                f"AUTO TRIGGER: {self.coordinator.threshold}+ new devices detected. "
                "Updating analysis..."
            )
        logger.info(message)
        self.add_log(message, LogSeverity.warning)

    def _handle_report(self, report: str) -> None:
        self.add_log("Security analysis complete.", LogSeverity.success)

