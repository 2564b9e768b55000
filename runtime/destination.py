"""Destination Resolver — DestinationSpec to ``xcodebuild -destination`` syntax."""

from __future__ import annotations

import json
import logging

from contracts.destination import Destination, DestinationSpec, Platform, SimulatorDescriptor
from contracts.errors import (
    MissingRequiredFieldFailure,
    SimulatorListFailure,
    SimulatorNotFoundFailure,
)
from contracts.execution import CommandExecutor

logger = logging.getLogger(__name__)

LIST_SIMULATORS_COMMAND = ["xcrun", "simctl", "list", "devices", "available", "--json"]


def parse_simulator_listing(raw: str) -> dict[str, list[SimulatorDescriptor]]:
    """Parse ``simctl list devices --json`` into runtime -> descriptors.

    Runtime order and descriptor order are preserved as listed.
    """
    try:
        data = json.loads(raw or "")
    except json.JSONDecodeError as exc:
        raise SimulatorListFailure(f"could not parse simulator list: {exc}") from exc
    devices = data.get("devices") if isinstance(data, dict) else None
    if not isinstance(devices, dict):
        raise SimulatorListFailure("simulator list has no 'devices' mapping")

    listing: dict[str, list[SimulatorDescriptor]] = {}
    for runtime, entries in devices.items():
        listing[runtime] = [
            SimulatorDescriptor(
                name=entry["name"],
                udid=entry["udid"],
                state=entry.get("state", "Shutdown"),
                runtime=runtime,
                is_available=entry.get("isAvailable", True),
            )
            for entry in entries or []
            if isinstance(entry, dict) and "name" in entry and "udid" in entry
        ]
    return listing


# CoreSimulator runtime families per OS; visionOS runtimes are named xrOS.
RUNTIME_FAMILIES: dict[str, tuple[str, ...]] = {
    "iOS": ("ios",),
    "watchOS": ("watchos",),
    "tvOS": ("tvos",),
    "visionOS": ("visionos", "xros"),
}


def runtime_matches(runtime: str, platform: Platform) -> bool:
    """True when a runtime identifier (``com.apple.CoreSimulator.SimRuntime.iOS-17-2``)
    belongs to *platform*'s OS family."""
    tail = runtime.rsplit(".", 1)[-1]
    family = tail.split("-", 1)[0].lower()
    return family in RUNTIME_FAMILIES.get(platform.os_family, (platform.os_family.lower(),))


def _runtime_version(runtime: str) -> tuple[int, ...]:
    parts = runtime.rsplit(".", 1)[-1].split("-")[1:]
    return tuple(int(p) for p in parts if p.isdigit())


class DestinationResolver:
    """Turns a DestinationSpec into a Destination, looking up simulator names."""

    def __init__(self, executor: CommandExecutor) -> None:
        self._executor = executor

    async def list_simulators(self) -> dict[str, list[SimulatorDescriptor]]:
        result = await self._executor(LIST_SIMULATORS_COMMAND, "List Simulators")
        if not result.success:
            raise SimulatorListFailure(result.error or "simctl exited with a non-zero status")
        return parse_simulator_listing(result.output)

    async def find_simulator(
        self,
        name: str,
        platform: Platform | None = None,
        use_latest_os: bool = True,
    ) -> SimulatorDescriptor:
        """First simulator whose name matches *name* exactly.

        With *use_latest_os* the newest matching runtime is searched first;
        otherwise runtimes are searched in listing order.
        """
        listing = await self.list_simulators()
        runtimes = list(listing)
        if platform is not None:
            runtimes = [r for r in runtimes if runtime_matches(r, platform)]
        if use_latest_os:
            runtimes.sort(key=_runtime_version, reverse=True)

        for runtime in runtimes:
            for sim in listing[runtime]:
                if sim.name == name and sim.is_available:
                    logger.debug("Resolved simulator %r to %s (%s)", name, sim.udid, runtime)
                    return sim
        raise SimulatorNotFoundFailure(name, platform.value if platform else None)

    async def resolve(self, spec: DestinationSpec) -> Destination:
        platform = spec.platform

        if platform is Platform.MACOS:
            value = "platform=macOS"
            if spec.arch:
                value += f",arch={spec.arch}"
            return Destination(platform=platform, value=value)

        if not platform.is_simulator:
            if spec.device_id:
                return Destination(
                    platform=platform,
                    value=f"platform={platform.value},id={spec.device_id}",
                    device_id=spec.device_id,
                )
            return Destination(platform=platform, value=f"generic/platform={platform.value}")

        simulator_id = spec.simulator_id
        if not simulator_id:
            if not spec.simulator_name:
                raise MissingRequiredFieldFailure(["simulator_id", "simulator_name"], "one_of")
            sim = await self.find_simulator(spec.simulator_name, platform, spec.use_latest_os)
            simulator_id = sim.udid
        return Destination(
            platform=platform,
            value=f"platform={platform.value},id={simulator_id}",
            simulator_id=simulator_id,
        )
