"""Synthetic device fabrication: identity, open ports, and risk.

Everything here draws from an injected ``random.Random`` so a seeded
generator reproduces the same population.
"""

import random
import uuid
from collections.abc import Iterable

from netsentinel.network.models import Device, DeviceType, OpenPort, RiskLevel

VENDORS = [
    "Apple",
    "Dell",
    "Samsung",
    "Hikvision",
    "Cisco",
    "Espressif",
    "Huawei",
    "Intel",
    "Xiaomi",
    "TP-Link",
]

OS_LIST = [
    "Windows 11",
    "Ubuntu 22.04",
    "iOS 17",
    "Android 14",
    "HikOS",
    "Cisco IOS",
    "macOS Sonoma",
]

HOST_DEVICE_ID = "kocal-main"
GATEWAY_DEVICE_ID = "gateway"

TELNET_PORT = 23
SMB_PORT = 445
RDP_PORT = 3389

# Embedded categories usually ship a web admin panel
_HTTP_BONUS_TYPES = {DeviceType.camera, DeviceType.iot, DeviceType.router}
_HTTP_PROBABILITY = 0.2
_HTTP_BONUS = 0.1
_HTTPS_PROBABILITY = 0.1


def generate_mac(rng: random.Random) -> str:
    """Six random hex octets, uppercase and colon-separated."""
    return ":".join(f"{rng.randrange(256):02X}" for _ in range(6))


def generate_device_id(rng: random.Random) -> str:
    return str(uuid.UUID(int=rng.getrandbits(128), version=4))


def derive_ports(device_type: DeviceType, rng: random.Random) -> list[OpenPort]:
    """Roll the open port set for a freshly discovered device."""
    ports: list[OpenPort] = []

    http_probability = _HTTP_PROBABILITY
    if device_type in _HTTP_BONUS_TYPES:
        http_probability += _HTTP_BONUS
    if rng.random() < http_probability:
        ports.append(OpenPort(port=80, service="HTTP"))
    if rng.random() < _HTTPS_PROBABILITY:
        ports.append(OpenPort(port=443, service="HTTPS"))

    if device_type in (DeviceType.server, DeviceType.computer):
        if rng.random() < 0.5:
            ports.append(OpenPort(port=22, service="SSH"))
        if rng.random() < 0.3:
            ports.append(
                OpenPort(port=SMB_PORT, service="SMB", vulnerability="SMBv1 potential risk")
            )
        if rng.random() < 0.2:
            ports.append(OpenPort(port=RDP_PORT, service="RDP"))

    if device_type == DeviceType.camera:
        ports.append(OpenPort(port=554, service="RTSP"))
        if rng.random() < 0.4:
            ports.append(
                OpenPort(
                    port=8000,
                    service="Hikvision-SDK",
                    vulnerability="default credential risk",
                )
            )

    return ports


def derive_risk(ports: Iterable[OpenPort]) -> RiskLevel:
    """Classify a port set.

    Telnet always wins, then any vulnerability tag, then exposed
    RDP/SMB.
    """
    ports = list(ports)
    if any(p.port == TELNET_PORT for p in ports):
        return RiskLevel.critical
    if any(p.vulnerability for p in ports):
        return RiskLevel.high
    if any(p.port in (RDP_PORT, SMB_PORT) for p in ports):
        return RiskLevel.medium
    return RiskLevel.low


def build_fixed_devices(subnet: str, rng: random.Random) -> list[Device]:
    """The local host and the gateway, present from startup and never volatile."""
    host = Device(
        id=HOST_DEVICE_ID,
        ip=f"{subnet}.42",
        mac="AA:BB:CC:DD:EE:FF",
        vendor="MSI",
        hostname="KOCAL-LAPTOP",
        type=DeviceType.computer,
        os="Windows 11 Pro",
        is_online=True,
        latency=1,
        open_ports=(
            OpenPort(port=SMB_PORT, service="SMB"),
            OpenPort(port=RDP_PORT, service="RDP"),
        ),
        security_risk=RiskLevel.medium,
        volatile=False,
    )
    gateway = Device(
        id=GATEWAY_DEVICE_ID,
        ip=f"{subnet}.1",
        mac=generate_mac(rng),
        vendor="Cisco",
        hostname="gateway-router",
        type=DeviceType.router,
        os="Cisco IOS",
        is_online=True,
        latency=2,
        open_ports=(
            OpenPort(port=80, service="HTTP"),
            OpenPort(port=53, service="DNS"),
        ),
        security_risk=RiskLevel.low,
        volatile=False,
    )
    return [host, gateway]


def create_random_device(subnet: str, ip_suffix: int, rng: random.Random) -> Device:
    """Fabricate a new online device at ``<subnet>.<ip_suffix>``."""
    device_type = rng.choice(list(DeviceType))
    ports = derive_ports(device_type, rng)
    return Device(
        id=generate_device_id(rng),
        ip=f"{subnet}.{ip_suffix}",
        mac=generate_mac(rng),
        vendor=rng.choice(VENDORS),
        hostname=f"dev-{device_type.value[:3]}-{ip_suffix}",
        type=device_type,
        os=rng.choice(OS_LIST),
        is_online=True,
        latency=rng.randrange(10, 210),
        open_ports=tuple(ports),
        security_risk=derive_risk(ports),
    )
