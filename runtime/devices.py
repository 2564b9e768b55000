"""Physical device discovery via ``xcrun devicectl list devices``."""

from __future__ import annotations

import json
import logging
import tempfile
import uuid
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from contracts.errors import DeviceListFailure
from contracts.execution import CommandExecutor

logger = logging.getLogger(__name__)

AVAILABLE = "Available"
AVAILABLE_WIFI = "Available (WiFi)"
UNPAIRED = "Unpaired"


class DeviceInfo(BaseModel):
    name: str
    identifier: str
    platform: str = "Unknown"
    model: str | None = None
    os_version: str | None = None
    state: str = UNPAIRED
    connection_type: str = ""
    product_type: str | None = None
    cpu_architecture: str | None = None
    developer_mode: str | None = None

    @property
    def available(self) -> bool:
        return self.state in (AVAILABLE, AVAILABLE_WIFI)


def platform_from_identifier(platform_id: str) -> str:
    pid = (platform_id or "").lower()
    if "ios" in pid or "iphone" in pid:
        return "iOS"
    if "ipad" in pid:
        return "iPadOS"
    if "watch" in pid:
        return "watchOS"
    if "tv" in pid:
        return "tvOS"
    if "vision" in pid or "xros" in pid:
        return "visionOS"
    return "Unknown"


def classify_connection(pairing_state: str, tunnel_state: str) -> str:
    # paired + tunnel not connected is reported as WiFi-available
    if pairing_state == "paired":
        return AVAILABLE if tunnel_state == "connected" else AVAILABLE_WIFI
    return UNPAIRED


def parse_devicectl_json(data: dict[str, Any]) -> list[DeviceInfo]:
    """Devices from a ``devicectl --json-output`` document.

    Simulators and entries with no pairing state are skipped; duplicate
    identifiers keep their first occurrence.
    """
    devices: list[DeviceInfo] = []
    seen: set[str] = set()
    for raw in (data.get("result") or {}).get("devices") or []:
        conn = raw.get("connectionProperties") or {}
        if raw.get("visibilityClass") == "Simulator" or not conn.get("pairingState"):
            continue
        identifier = raw.get("identifier")
        if not identifier or identifier in seen:
            continue
        seen.add(identifier)

        props = raw.get("deviceProperties") or {}
        hardware = raw.get("hardwareProperties") or {}
        cpu = hardware.get("cpuType") or {}
        devices.append(
            DeviceInfo(
                name=props.get("name") or "Unknown Device",
                identifier=identifier,
                platform=platform_from_identifier(props.get("platformIdentifier", "")),
                model=hardware.get("marketingName") or hardware.get("productType"),
                os_version=props.get("osVersionNumber"),
                state=classify_connection(conn.get("pairingState", ""), conn.get("tunnelState", "")),
                connection_type=conn.get("transportType") or "",
                product_type=hardware.get("productType"),
                cpu_architecture=cpu.get("name") if isinstance(cpu, dict) else None,
                developer_mode=props.get("developerModeStatus"),
            )
        )
    return devices


async def list_devices(executor: CommandExecutor, temp_dir: str | Path | None = None) -> list[DeviceInfo]:
    """Run devicectl with a JSON output file and parse it.

    Raises DeviceListFailure if the command fails or writes unreadable JSON.
    """
    directory = Path(temp_dir) if temp_dir else Path(tempfile.gettempdir())
    json_path = directory / f"devicectl-{uuid.uuid4().hex}.json"
    try:
        result = await executor(
            ["xcrun", "devicectl", "list", "devices", "--json-output", str(json_path)],
            "List Devices (devicectl with JSON)",
        )
        if not result.success:
            raise DeviceListFailure(result.error or "devicectl exited with a non-zero status")
        try:
            data = json.loads(json_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise DeviceListFailure(f"could not read devicectl output: {exc}") from exc
    finally:
        json_path.unlink(missing_ok=True)
    if not isinstance(data, dict):
        raise DeviceListFailure("devicectl output is not a JSON object")
    devices = parse_devicectl_json(data)
    logger.info("Found %d physical device(s)", len(devices))
    return devices


def render_device_list(devices: list[DeviceInfo]) -> str:
    if not devices:
        return (
            "Connected Devices:\n\nNo physical Apple devices found.\n\n"
            "Make sure devices are connected, unlocked and trusted, and that "
            "developer mode is enabled.\nFor simulators, use the list_sims tool instead."
        )
    lines = ["Connected Devices:"]
    available = [d for d in devices if d.available]
    unpaired = [d for d in devices if not d.available]
    if available:
        lines.append("\n✅ Available Devices:")
        for d in available:
            lines.append(f"\n📱 {d.name}")
            lines.append(f"   UDID: {d.identifier}")
            lines.append(f"   Model: {d.model or 'Unknown'}")
            lines.append(f"   Platform: {d.platform} {d.os_version or ''}".rstrip())
            if d.cpu_architecture:
                lines.append(f"   CPU Architecture: {d.cpu_architecture}")
            lines.append(f"   Connection: {d.connection_type or 'Unknown'} ({d.state})")
            if d.developer_mode:
                lines.append(f"   Developer Mode: {d.developer_mode}")
    if unpaired:
        lines.append("\n❌ Unpaired Devices:")
        lines.extend(f"- {d.name} ({d.identifier})" for d in unpaired)
    return "\n".join(lines)
