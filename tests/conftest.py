"""Shared test fixtures."""

import random
from collections.abc import Callable, Generator, Sequence

import pytest
from fastapi.testclient import TestClient

import netsentinel.config as config_module
from netsentinel.config import Settings
from netsentinel.main import app
from netsentinel.monitor.service import MonitorService
from netsentinel.network.models import Device, DeviceType, OpenPort, RiskLevel
from netsentinel.network.simulator import NetworkSimulator

SUBNET = "192.168.1"


class _FixedRandom(random.Random):
    """random() always returns ``value``; integer draws stay on the seeded generator."""

    def __init__(self, value: float, seed: int = 0) -> None:
        self.value = value
        super().__init__(seed)

    def random(self) -> float:
        return self.value

    def getrandbits(self, k: int) -> int:
        return super().getrandbits(k)


def _make_device(
    suffix: int,
    *,
    device_id: str | None = None,
    online: bool = True,
    risk: RiskLevel = RiskLevel.low,
    ports: Sequence[OpenPort] = (),
    latency: int = 50,
) -> Device:
    return Device(
        id=device_id or f"dev-{suffix}",
        ip=f"{SUBNET}.{suffix}",
        mac="02:00:00:00:00:01",
        vendor="Intel",
        hostname=f"dev-com-{suffix}",
        type=DeviceType.computer,
        os="Ubuntu 22.04",
        is_online=online,
        latency=latency,
        open_ports=tuple(ports),
        security_risk=risk,
    )


async def _echo_analyzer(devices: Sequence[Device]) -> str:
    return f"# Report\n\n{len(devices)} device(s) analyzed."


@pytest.fixture
def make_device() -> Callable[..., Device]:
    """Factory for online, low-risk devices at ``192.168.1.<suffix>``."""
    return _make_device


@pytest.fixture
def fixed_random() -> Callable[[float], random.Random]:
    """Factory for generators whose random() always returns the given value."""
    return _FixedRandom


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def simulator(rng) -> NetworkSimulator:
    return NetworkSimulator(SUBNET, rng=rng)


@pytest.fixture
def quiet_simulator() -> NetworkSimulator:
    """Simulator that never discovers devices and never disconnects them."""
    return NetworkSimulator(SUBNET, rng=_FixedRandom(0.99), discovery_probability=0.0)


@pytest.fixture
def env_file(tmp_path, monkeypatch):
    """Point Settings at an isolated .env file."""
    path = tmp_path / ".env"
    monkeypatch.setattr(config_module, "_ENV_FILE", path)
    return path


@pytest.fixture
def client(env_file) -> Generator[TestClient, None, None]:
    """TestClient whose monitor uses a local analyzer instead of Gemini."""
    with TestClient(app) as c:
        cfg = Settings(tick_interval=60, random_seed=7)
        app.state.monitor = MonitorService.from_settings(cfg, analyzer=_echo_analyzer)
        yield c
