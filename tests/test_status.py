"""Tests for current status and windowed uptime."""

from __future__ import annotations

import uuid
from datetime import timedelta
from types import SimpleNamespace

import pytest

from beacon.exceptions import EndpointNotFound, PlanNotFound
from beacon.services.stats_service import (
    EPOCH,
    EndpointStatus,
    compute_uptime,
    get_current_status,
    get_uptime,
    retention_cutoff,
)


class TestComputeUptime:
    def test_empty_history(self) -> None:
        report = compute_uptime([], window_hrs=24)
        assert report.uptime_percent is None
        assert (report.total_checks, report.up_checks, report.window_hrs) == (0, 0, 24)

    def test_two_of_three_up(self) -> None:
        results = [SimpleNamespace(is_up=True), SimpleNamespace(is_up=False), SimpleNamespace(is_up=True)]
        report = compute_uptime(results, window_hrs=24)
        assert report.uptime_percent == 66.67
        assert (report.total_checks, report.up_checks) == (3, 2)

    def test_bounds_hold(self) -> None:
        for up, down in [(0, 1), (1, 0), (1, 6), (7, 3), (999, 1)]:
            results = [SimpleNamespace(is_up=True)] * up + [SimpleNamespace(is_up=False)] * down
            report = compute_uptime(results, window_hrs=0)
            assert report.up_checks <= report.total_checks
            assert 0 <= report.uptime_percent <= 100

    def test_is_order_independent(self) -> None:
        results = [SimpleNamespace(is_up=i % 3 == 0) for i in range(10)]
        assert compute_uptime(results, 1) == compute_uptime(list(reversed(results)), 1)


class TestRetentionCutoff:
    def test_unbounded_retention_starts_at_epoch(self, now) -> None:
        assert retention_cutoff(0, now) == EPOCH

    def test_bounded_retention(self, now) -> None:
        assert retention_cutoff(24, now) == now - timedelta(hours=24)


class TestCurrentStatus:
    async def test_never_checked_is_unknown(self, store, make_user, make_endpoint) -> None:
        endpoint = await make_endpoint(await make_user("Free"))

        status = await get_current_status(endpoint.id, store)

        assert status == EndpointStatus(status="UNKNOWN", last_checked_at=None, response_ms=None, status_code=None)

    async def test_latest_result_wins(self, store, make_user, make_endpoint, add_result, now) -> None:
        endpoint = await make_endpoint(await make_user("Free"))
        await add_result(endpoint, now - timedelta(minutes=10), is_up=True)
        await add_result(endpoint, now - timedelta(minutes=5), is_up=False, status_code=0)

        status = await get_current_status(endpoint.id, store)

        assert status.status == "DOWN"
        assert status.status_code == 0
        assert status.response_ms == 42
        assert status.last_checked_at == now - timedelta(minutes=5)

    async def test_up_status(self, store, make_user, make_endpoint, add_result, now) -> None:
        endpoint = await make_endpoint(await make_user("Free"))
        await add_result(endpoint, now, is_up=True, status_code=204)

        status = await get_current_status(endpoint.id, store)

        assert (status.status, status.status_code) == ("UP", 204)

    async def test_repeated_reads_are_identical(self, store, make_user, make_endpoint, add_result, now) -> None:
        endpoint = await make_endpoint(await make_user("Free"))
        await add_result(endpoint, now, is_up=True)

        assert await get_current_status(endpoint.id, store) == await get_current_status(endpoint.id, store)


class TestUptime:
    async def test_two_up_one_down(self, store, make_user, make_endpoint, add_result, now) -> None:
        endpoint = await make_endpoint(await make_user("Free"))
        await add_result(endpoint, now - timedelta(hours=3), is_up=True, status_code=200)
        await add_result(endpoint, now - timedelta(hours=2), is_up=True, status_code=200)
        await add_result(endpoint, now - timedelta(hours=1), is_up=False, status_code=0)

        report = await get_uptime(endpoint.id, store, now=now)

        assert report.uptime_percent == 66.67
        assert report.total_checks == 3
        assert report.up_checks == 2
        assert report.window_hrs == 24

    async def test_results_outside_retention_excluded(self, store, make_user, make_endpoint, add_result, now) -> None:
        endpoint = await make_endpoint(await make_user("Free"))
        await add_result(endpoint, now - timedelta(hours=1), is_up=True)
        await add_result(endpoint, now - timedelta(hours=30), is_up=False)
        await add_result(endpoint, now - timedelta(hours=24), is_up=False)

        report = await get_uptime(endpoint.id, store, now=now)

        # The result exactly at the cutoff is inside the window.
        assert (report.total_checks, report.up_checks) == (2, 1)
        assert report.uptime_percent == 50.0

    async def test_unbounded_retention_includes_all_history(self, store, make_user, make_endpoint, add_result, now) -> None:
        endpoint = await make_endpoint(await make_user("Pro"))
        await add_result(endpoint, now - timedelta(hours=1), is_up=True)
        await add_result(endpoint, now - timedelta(days=400), is_up=False)

        report = await get_uptime(endpoint.id, store, now=now)

        assert (report.total_checks, report.up_checks, report.window_hrs) == (2, 1, 0)

    async def test_no_history_in_window(self, store, make_user, make_endpoint, add_result, now) -> None:
        endpoint = await make_endpoint(await make_user("Free"))
        await add_result(endpoint, now - timedelta(hours=48), is_up=True)

        report = await get_uptime(endpoint.id, store, now=now)

        assert report.uptime_percent is None
        assert (report.total_checks, report.up_checks) == (0, 0)

    async def test_owner_without_plan(self, store, make_user, make_endpoint) -> None:
        endpoint = await make_endpoint(await make_user(None))
        with pytest.raises(PlanNotFound):
            await get_uptime(endpoint.id, store)

    async def test_unknown_endpoint(self, store) -> None:
        with pytest.raises(EndpointNotFound):
            await get_uptime(uuid.uuid4(), store)
