"""Unit tests for the Destination Resolver."""

from __future__ import annotations

import json

import pytest

from contracts.destination import DestinationSpec, Platform
from contracts.errors import (
    MissingRequiredFieldFailure,
    SimulatorListFailure,
    SimulatorNotFoundFailure,
)
from contracts.execution import ExecutionResult
from runtime.destination import (
    LIST_SIMULATORS_COMMAND,
    DestinationResolver,
    parse_simulator_listing,
    runtime_matches,
)
from runtime.executor import ScriptedExecutor

IOS_17 = "com.apple.CoreSimulator.SimRuntime.iOS-17-5"
IOS_18 = "com.apple.CoreSimulator.SimRuntime.iOS-18-2"
WATCH_11 = "com.apple.CoreSimulator.SimRuntime.watchOS-11-2"
XROS_2 = "com.apple.CoreSimulator.SimRuntime.xrOS-2-0"

LISTING = json.dumps(
    {
        "devices": {
            IOS_17: [
                {"name": "iPhone 15", "udid": "UUID-15-17", "state": "Shutdown", "isAvailable": True},
                {"name": "iPhone 16", "udid": "UUID-16-17", "state": "Shutdown", "isAvailable": True},
            ],
            IOS_18: [
                {"name": "iPhone 16", "udid": "UUID-16-18", "state": "Booted", "isAvailable": True},
                {"name": "iPhone 16 Pro", "udid": "UUID-16P-18", "state": "Shutdown", "isAvailable": True},
            ],
            WATCH_11: [
                {"name": "Apple Watch Series 10 (46mm)", "udid": "UUID-W", "state": "Shutdown"},
            ],
        }
    }
)


def _listing_executor(output: str = LISTING) -> ScriptedExecutor:
    return ScriptedExecutor([ExecutionResult(success=True, output=output)])


# ── Parsing ──────────────────────────────────────────────────────────


class TestParseListing:
    def test_groups_by_runtime_in_order(self) -> None:
        listing = parse_simulator_listing(LISTING)
        assert list(listing) == [IOS_17, IOS_18, WATCH_11]
        assert [s.udid for s in listing[IOS_18]] == ["UUID-16-18", "UUID-16P-18"]
        assert listing[IOS_18][0].booted
        assert listing[WATCH_11][0].runtime == WATCH_11

    def test_invalid_json(self) -> None:
        with pytest.raises(SimulatorListFailure, match="could not parse"):
            parse_simulator_listing("not json")

    def test_missing_devices_mapping(self) -> None:
        with pytest.raises(SimulatorListFailure, match="devices"):
            parse_simulator_listing('{"runtimes": []}')

    def test_runtime_matching(self) -> None:
        assert runtime_matches(IOS_18, Platform.IOS_SIMULATOR)
        assert not runtime_matches(WATCH_11, Platform.IOS_SIMULATOR)
        assert runtime_matches(WATCH_11, Platform.WATCHOS_SIMULATOR)
        assert runtime_matches(XROS_2, Platform.VISIONOS_SIMULATOR)
        assert not runtime_matches(XROS_2, Platform.IOS_SIMULATOR)


# ── Simulator lookup ─────────────────────────────────────────────────


class TestFindSimulator:
    @pytest.mark.asyncio
    async def test_exact_name_newest_runtime_first(self) -> None:
        resolver = DestinationResolver(_listing_executor())
        sim = await resolver.find_simulator("iPhone 16", Platform.IOS_SIMULATOR)
        assert sim.udid == "UUID-16-18"

    @pytest.mark.asyncio
    async def test_listing_order_without_latest_os(self) -> None:
        resolver = DestinationResolver(_listing_executor())
        sim = await resolver.find_simulator("iPhone 16", Platform.IOS_SIMULATOR, use_latest_os=False)
        assert sim.udid == "UUID-16-17"

    @pytest.mark.asyncio
    async def test_no_fuzzy_matching(self) -> None:
        executor = _listing_executor()
        resolver = DestinationResolver(executor)
        with pytest.raises(SimulatorNotFoundFailure) as excinfo:
            await resolver.find_simulator("iPhone", Platform.IOS_SIMULATOR)
        assert excinfo.value.name == "iPhone"
        assert "'iPhone' not found" in excinfo.value.message
        assert executor.call_count == 1

    @pytest.mark.asyncio
    async def test_platform_filters_runtimes(self) -> None:
        resolver = DestinationResolver(_listing_executor())
        with pytest.raises(SimulatorNotFoundFailure):
            await resolver.find_simulator("iPhone 16", Platform.WATCHOS_SIMULATOR)

    @pytest.mark.asyncio
    async def test_listing_failure_is_surfaced_verbatim(self) -> None:
        executor = ScriptedExecutor([ExecutionResult(success=False, error="xcrun: error: unable to find utility")])
        resolver = DestinationResolver(executor)
        with pytest.raises(SimulatorListFailure) as excinfo:
            await resolver.list_simulators()
        assert excinfo.value.detail == "xcrun: error: unable to find utility"
        assert executor.commands == [LIST_SIMULATORS_COMMAND]


# ── resolve() ────────────────────────────────────────────────────────


class TestResolve:
    @pytest.mark.asyncio
    async def test_simulator_id_needs_no_lookup(self) -> None:
        executor = ScriptedExecutor()
        dest = await DestinationResolver(executor).resolve(
            DestinationSpec(platform=Platform.IOS_SIMULATOR, simulator_id="UUID-1")
        )
        assert dest.value == "platform=iOS Simulator,id=UUID-1"
        assert dest.simulator_id == "UUID-1"
        assert executor.call_count == 0

    @pytest.mark.asyncio
    async def test_simulator_name_is_looked_up(self) -> None:
        dest = await DestinationResolver(_listing_executor()).resolve(
            DestinationSpec(platform=Platform.IOS_SIMULATOR, simulator_name="iPhone 16 Pro")
        )
        assert dest.value == "platform=iOS Simulator,id=UUID-16P-18"

    @pytest.mark.asyncio
    async def test_vision_simulator_on_xros_runtime(self) -> None:
        listing = json.dumps(
            {"devices": {XROS_2: [{"name": "Apple Vision Pro", "udid": "VP-1", "state": "Shutdown"}]}}
        )
        dest = await DestinationResolver(_listing_executor(listing)).resolve(
            DestinationSpec(platform=Platform.VISIONOS_SIMULATOR, simulator_name="Apple Vision Pro")
        )
        assert dest.value == "platform=visionOS Simulator,id=VP-1"

    @pytest.mark.asyncio
    async def test_unknown_name_issues_no_further_calls(self) -> None:
        executor = _listing_executor()
        with pytest.raises(SimulatorNotFoundFailure):
            await DestinationResolver(executor).resolve(
                DestinationSpec(platform=Platform.IOS_SIMULATOR, simulator_name="Pixel 8")
            )
        assert executor.call_count == 1

    @pytest.mark.asyncio
    async def test_simulator_without_id_or_name(self) -> None:
        with pytest.raises(MissingRequiredFieldFailure) as excinfo:
            await DestinationResolver(ScriptedExecutor()).resolve(DestinationSpec(platform=Platform.IOS_SIMULATOR))
        assert excinfo.value.fields == ["simulator_id", "simulator_name"]

    @pytest.mark.asyncio
    async def test_device_uses_identifier_directly(self) -> None:
        executor = ScriptedExecutor()
        dest = await DestinationResolver(executor).resolve(DestinationSpec(platform=Platform.IOS, device_id="00008110-ABC"))
        assert dest.value == "platform=iOS,id=00008110-ABC"
        assert dest.device_id == "00008110-ABC"
        assert executor.call_count == 0

    @pytest.mark.asyncio
    async def test_generic_device_destination(self) -> None:
        dest = await DestinationResolver(ScriptedExecutor()).resolve(DestinationSpec(platform=Platform.WATCHOS))
        assert dest.value == "generic/platform=watchOS"

    @pytest.mark.asyncio
    async def test_macos_with_arch(self) -> None:
        resolver = DestinationResolver(ScriptedExecutor())
        assert (await resolver.resolve(DestinationSpec(platform=Platform.MACOS))).value == "platform=macOS"
        dest = await resolver.resolve(DestinationSpec(platform=Platform.MACOS, arch="arm64"))
        assert dest.value == "platform=macOS,arch=arm64"

    def test_spec_rejects_name_and_id_together(self) -> None:
        with pytest.raises(ValueError):
            DestinationSpec(platform=Platform.IOS_SIMULATOR, simulator_id="UUID-1", simulator_name="iPhone 16")
