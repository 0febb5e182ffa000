"""
Tests for fleet-wide sequential reconciliation.
All timing goes through a fake sleep - no wall-clock delays.
"""

import asyncio

import pytest

from sensibo_bridge.errors import TransportError
from sensibo_bridge.services.reconciler import DeviceReconciler
from sensibo_bridge.services.scheduler import FleetScheduler


def build_fleet(devices, client, sink, sleep, **kwargs):
    fleet = FleetScheduler(inter_device_delay=3.0, sleep=sleep, **kwargs)
    for device in devices:
        fleet.add(DeviceReconciler(device, client, sink))
    return fleet


@pytest.mark.asyncio
async def test_cycle_reads_in_discovery_order_with_delay_between(devices, fake_client, sink, fake_sleep):
    fake_sleep.log = fake_client.calls
    fleet = build_fleet(devices, fake_client, sink, fake_sleep)

    ran = await fleet.run_cycle()

    assert ran is True
    assert fake_client.calls == [
        ("measurement", "pod-a"),
        ("climate", "pod-a"),
        ("sleep", 3.0),
        ("measurement", "pod-b"),
        ("climate", "pod-b"),
        ("sleep", 3.0),
        ("measurement", "pod-c"),
        ("climate", "pod-c"),
    ]
    assert fake_sleep.delays == [3.0, 3.0]
    assert fleet.cycles_completed == 1


@pytest.mark.asyncio
async def test_single_device_cycle_has_no_delay(devices, fake_client, sink, fake_sleep):
    fleet = build_fleet(devices[:1], fake_client, sink, fake_sleep)

    await fleet.run_cycle()

    assert fake_sleep.delays == []


@pytest.mark.asyncio
async def test_failing_device_does_not_abort_cycle(devices, fake_client, sink, fake_sleep):
    fleet = build_fleet(devices, fake_client, sink, fake_sleep)

    async def explode():
        raise RuntimeError("boom")

    fleet.get("pod-b").reconcile = explode

    ran = await fleet.run_cycle()

    assert ran is True
    assert ("measurement", "pod-c") in fake_client.calls
    assert fake_sleep.delays == [3.0, 3.0]
    assert fleet.cycle_in_progress is False


@pytest.mark.asyncio
async def test_remote_errors_leave_other_devices_reconciled(devices, fake_client, sink, fake_sleep):
    fake_client.measurements["pod-a"] = TransportError("HTTP 503", status_code=503)
    fleet = build_fleet(devices, fake_client, sink, fake_sleep)

    await fleet.run_cycle()

    assert fleet.get("pod-c").snapshot.current_temperature == 21.0
    assert fleet.get("pod-a").snapshot.measured is None


@pytest.mark.asyncio
async def test_overlapping_cycle_is_skipped(devices, fake_client, sink):
    release = asyncio.Event()

    async def blocking_sleep(seconds):
        await release.wait()

    fleet = build_fleet(devices, fake_client, sink, blocking_sleep)

    first = asyncio.create_task(fleet.run_cycle())
    await asyncio.sleep(0)
    assert fleet.cycle_in_progress

    assert await fleet.run_cycle() is False

    release.set()
    assert await first is True
    assert fake_client.calls.count(("measurement", "pod-a")) == 1
    assert fleet.cycle_in_progress is False


@pytest.mark.asyncio
async def test_in_progress_flag_cleared_when_cycle_cancelled(devices, fake_client, sink):
    async def hang(seconds):
        await asyncio.Event().wait()

    fleet = build_fleet(devices, fake_client, sink, hang)

    task = asyncio.create_task(fleet.run_cycle())
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert fleet.cycle_in_progress is False
    # pod-a finished before the delay; pod-b never started
    assert fleet.get("pod-a").snapshot.target_temperature == 22
    assert fleet.get("pod-b").snapshot.measured is None


@pytest.mark.asyncio
async def test_start_runs_initial_then_periodic_cycles(devices, fake_client, sink):
    delays = []
    periodic_ticks = 0

    async def scripted_sleep(seconds):
        nonlocal periodic_ticks
        delays.append(seconds)
        if seconds == 300.0:
            periodic_ticks += 1
            if periodic_ticks > 1:
                await asyncio.Event().wait()
        await asyncio.sleep(0)

    fleet = build_fleet(
        devices[:1], fake_client, sink, scripted_sleep,
        polling_interval=300.0, initial_delay=10.0
    )

    fleet.start()
    assert fleet.is_running
    for _ in range(10):
        await asyncio.sleep(0)

    await fleet.stop()

    assert 10.0 in delays
    assert 300.0 in delays
    # Initial cycle + first periodic cycle (or one skipped by the overlap guard)
    assert 1 <= fleet.cycles_completed <= 2
    assert not fleet.is_running


@pytest.mark.asyncio
async def test_stop_without_start_is_noop(devices, fake_client, sink, fake_sleep):
    fleet = build_fleet(devices, fake_client, sink, fake_sleep)

    await fleet.stop()

    assert not fleet.is_running
