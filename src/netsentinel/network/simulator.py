"""Stateful network simulator.

Owns the device registry (keyed by IP) and advances it one tick at a
time: random disconnects and reconnects, latency jitter, and the
occasional newly discovered device.
"""

import logging
import math
import random

from netsentinel.network.generator import build_fixed_devices, create_random_device
from netsentinel.network.models import Device, EventType, NetworkEvent

logger = logging.getLogger(__name__)

DEFAULT_DEVICE_CAP = 20


class NetworkSimulator:
    """Single-writer registry of simulated devices."""

    def __init__(
        self,
        subnet: str,
        rng: random.Random | None = None,
        device_cap: int = DEFAULT_DEVICE_CAP,
        discovery_probability: float = 0.1,
        disconnect_probability: float = 0.05,
        reconnect_probability: float = 0.1,
    ) -> None:
        self.subnet = subnet
        self.device_cap = device_cap
        self.discovery_probability = discovery_probability
        self.disconnect_probability = disconnect_probability
        self.reconnect_probability = reconnect_probability
        self._rng = rng if rng is not None else random.Random()
        self._devices: dict[str, Device] = {}
        self.initialize()

    def __len__(self) -> int:
        return len(self._devices)

    def initialize(self) -> None:
        """Seed the registry with the fixed host and gateway devices."""
        for device in build_fixed_devices(self.subnet, self._rng):
            self._devices[device.ip] = device
        logger.debug("Registry initialized with %d fixed devices", len(self._devices))

    def discover(self) -> Device | None:
        """Maybe fabricate one new device; None when nothing was found."""
        if len(self._devices) >= self.device_cap:
            return None
        if self._rng.random() >= self.discovery_probability:
            return None

        suffix = self._rng.randint(2, 254)
        ip = f"{self.subnet}.{suffix}"
        if ip in self._devices:
            logger.debug("Discovery collided with existing device at %s, skipping", ip)
            return None

        device = create_random_device(self.subnet, suffix, self._rng)
        self._devices[device.ip] = device
        return device

    def tick(self) -> tuple[list[Device], list[NetworkEvent]]:
        """Advance the simulation one step.

        Returns a sorted snapshot of every device and the events this
        tick produced.
        """
        events: list[NetworkEvent] = []

        for device in self._devices.values():
            if device.volatile:
                event = self._roll_connectivity(device)
                if event is not None:
                    events.append(event)

            if device.is_online:
                jittered = device.latency + self._rng.uniform(-5, 5)
                device.latency = max(1, math.floor(jittered))

        new_device = self.discover()
        if new_device is not None:
            events.append(
                NetworkEvent(
                    type=EventType.new_device,
                    message=f"NEW DEVICE: {new_device.ip} ({new_device.type}) detected.",
                )
            )

        logger.debug("Tick produced %d event(s), registry size %d", len(events), len(self))
        return self.devices(), events

    def devices(self) -> list[Device]:
        """Copies of all devices: online first, then by last IP octet."""
        ordered = sorted(
            self._devices.values(),
            key=lambda d: (not d.is_online, d.last_octet),
        )
        return [d.model_copy() for d in ordered]

    def _roll_connectivity(self, device: Device) -> NetworkEvent | None:
        roll = self._rng.random()
        if device.is_online:
            if roll < self.disconnect_probability:
                device.is_online = False
                return NetworkEvent(
                    type=EventType.device_lost,
                    message=(
                        f"CONNECTION LOST: {device.hostname} ({device.ip}) "
                        "dropped off the network."
                    ),
                )
        elif roll < self.reconnect_probability:
            device.is_online = True
            device.latency = self._rng.randrange(5, 105)
            return NetworkEvent(
                type=EventType.device_reconnected,
                message=f"RECONNECTED: {device.hostname} ({device.ip}) rejoined the network.",
            )
        return None
