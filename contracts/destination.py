"""Build destination contracts."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, model_validator


class Platform(str, Enum):
    IOS = "iOS"
    WATCHOS = "watchOS"
    TVOS = "tvOS"
    VISIONOS = "visionOS"
    MACOS = "macOS"
    IOS_SIMULATOR = "iOS Simulator"
    WATCHOS_SIMULATOR = "watchOS Simulator"
    TVOS_SIMULATOR = "tvOS Simulator"
    VISIONOS_SIMULATOR = "visionOS Simulator"

    @property
    def is_simulator(self) -> bool:
        return self.value.endswith(" Simulator")

    @property
    def os_family(self) -> str:
        """Bare OS name, e.g. ``"watchOS"`` for both watchOS kinds."""
        return self.value.removesuffix(" Simulator")


SIMULATOR_PLATFORMS = [p.value for p in Platform if p.is_simulator]
DEVICE_PLATFORMS = [p.value for p in Platform if not p.is_simulator and p is not Platform.MACOS]


class DestinationSpec(BaseModel):
    platform: Platform
    simulator_name: str | None = None
    simulator_id: str | None = None
    device_id: str | None = None
    use_latest_os: bool = True
    arch: str | None = None

    @model_validator(mode="after")
    def _name_and_id_exclusive(self) -> "DestinationSpec":
        if self.simulator_name and self.simulator_id:
            raise ValueError("simulator_name and simulator_id are mutually exclusive")
        return self


class SimulatorDescriptor(BaseModel):
    """One entry of ``simctl list devices --json``."""

    name: str
    udid: str
    state: str = "Shutdown"
    runtime: str = ""
    is_available: bool = True

    @property
    def booted(self) -> bool:
        return self.state == "Booted"


class Destination(BaseModel):
    """A resolved destination, ready for ``xcodebuild -destination``."""

    platform: Platform
    value: str
    simulator_id: str | None = None
    device_id: str | None = None
