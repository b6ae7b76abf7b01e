"""Simulated device, port, and event models."""

import enum
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


class DeviceType(enum.StrEnum):
    computer = "computer"
    mobile = "mobile"
    camera = "camera"
    server = "server"
    iot = "iot"
    router = "router"


class RiskLevel(enum.StrEnum):
    """Ordered four-level risk classification (low < critical)."""

    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"

    @property
    def rank(self) -> int:
        return list(RiskLevel).index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank >= other.rank


class OpenPort(BaseModel):
    model_config = ConfigDict(frozen=True)

    port: int
    service: str
    vulnerability: str | None = None


class Device(BaseModel):
    """A simulated network host.

    Only ``is_online`` and ``latency`` change after creation; the simulator
    is their sole writer.
    """

    id: str = Field(frozen=True)
    ip: str = Field(frozen=True)
    mac: str = Field(frozen=True)
    vendor: str = Field(frozen=True)
    hostname: str = Field(frozen=True)
    type: DeviceType = Field(frozen=True)
    os: str = Field(frozen=True)
    is_online: bool = True
    latency: int = 0  # ms
    open_ports: tuple[OpenPort, ...] = Field(default=(), frozen=True)
    security_risk: RiskLevel = Field(default=RiskLevel.low, frozen=True)
    first_seen: datetime = Field(default_factory=lambda: datetime.now(UTC), frozen=True)
    # False = exempt from random disconnect/reconnect
    volatile: bool = Field(default=True, frozen=True)

    @property
    def last_octet(self) -> int:
        return int(self.ip.rsplit(".", 1)[1])

    @property
    def is_risky(self) -> bool:
        return self.security_risk >= RiskLevel.high


class EventType(enum.StrEnum):
    device_lost = "device_lost"
    device_reconnected = "device_reconnected"
    new_device = "new_device"


class NetworkEvent(BaseModel):
    """A single state transition produced by a simulator tick."""

    model_config = ConfigDict(frozen=True)

    type: EventType
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
