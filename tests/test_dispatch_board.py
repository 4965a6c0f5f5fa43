import asyncio
from datetime import datetime, timezone

import pytest

from conftest import booking_row, worker_row
from src.sweeper.models.domain import BookingStatus, Coordinate
from src.sweeper.services.dispatch import DispatchBoard, Notifier
from src.sweeper.services.routing.live_view import LiveRouteView, ViewStatus
from src.sweeper.services.routing.models import RoutePlan, RouteStop


NOW = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


class DummyPlanner:
    def __init__(self):
        self.calls = []

    async def plan(self, worker, bookings, optimize, now=None):
        active = [b for b in bookings if b.is_active_for(worker.id)]
        self.calls.append((worker.id, [b.id for b in active], optimize))
        if not active:
            return None
        stops = [RouteStop(booking=b, distance_meters=1000, duration_seconds=120, eta=NOW) for b in active]
        return RoutePlan(
            total_distance_meters=1000 * len(stops),
            total_duration_seconds=120 * len(stops),
            stops=stops,
            optimized=optimize and len(stops) > 1,
            geometry=[(27.50, -99.48), (27.52, -99.46)],
        )


def _board(store):
    planner = DummyPlanner()
    board = DispatchBoard(store, LiveRouteView(planner), Notifier(), clock=lambda: NOW)
    return board, planner


def test_load_populates_collections(fake_store):
    board, _ = _board(fake_store)
    asyncio.run(board.load())

    assert set(board.bookings) == {"B1", "B2", "B3"}
    assert set(board.workers) == {"W1", "W2"}
    assert [b.id for b in board.pending_bookings] == ["B3"]
    assert {b.id for b in board.assigned_bookings} == {"B1", "B2"}
    assert [w.id for w in board.available_workers] == ["W1"]


def test_load_failure_notifies_and_keeps_going(fake_store):
    fake_store.fail_on.add("list_bookings")
    board, _ = _board(fake_store)

    asyncio.run(board.load())

    assert board.bookings == {}
    assert set(board.workers) == {"W1", "W2"}
    assert [n.message for n in board.notifier.drain()] == ["Failed to fetch bookings"]


def test_assign_booking_writes_booking_then_worker(fake_store):
    board, _ = _board(fake_store)

    async def scenario():
        await board.load()
        return await board.assign_booking("B3", "W1")

    assert asyncio.run(scenario()) is True
    assert fake_store.booking_updates == [
        ("B3", {"worker_id": "W1", "status": "assigned", "updated_at": NOW.isoformat()})
    ]
    assert fake_store.worker_updates == [
        ("W1", {"assigned_bookings_count": 3, "updated_at": NOW.isoformat()})
    ]
    notices = board.notifier.drain()
    assert [(n.level, n.message) for n in notices] == [("success", "Worker assigned successfully!")]
    # local state waits for the change feed
    assert board.bookings["B3"].status is BookingStatus.PENDING


def test_assign_booking_failure_is_reported_not_raised(fake_store):
    fake_store.fail_on.add("update_booking")
    board, _ = _board(fake_store)

    async def scenario():
        await board.load()
        before = (dict(board.bookings), dict(board.workers))
        result = await board.assign_booking("B3", "W1")
        return before, result

    before, result = asyncio.run(scenario())

    assert result is False
    assert (board.bookings, board.workers) == before
    assert fake_store.worker_updates == []
    assert [(n.level, n.message) for n in board.notifier.drain()] == [("error", "Failed to assign worker")]


def test_drop_only_assigns_pending_bookings(fake_store):
    board, _ = _board(fake_store)

    async def scenario():
        await board.load()
        dropped_assigned = await board.drop_booking_on_worker("B1", "W1")
        dropped_unknown = await board.drop_booking_on_worker("B9", "W1")
        dropped_pending = await board.drop_booking_on_worker("B3", "W1")
        return dropped_assigned, dropped_unknown, dropped_pending

    assert asyncio.run(scenario()) == (False, False, True)
    assert [booking_id for booking_id, _ in fake_store.booking_updates] == ["B3"]


def test_update_booking_status(fake_store):
    board, _ = _board(fake_store)

    assert asyncio.run(board.update_booking_status("B1", BookingStatus.COMPLETED)) is True
    assert fake_store.booking_updates == [("B1", {"status": "completed", "updated_at": NOW.isoformat()})]

    fake_store.fail_on.add("update_booking")
    assert asyncio.run(board.update_booking_status("B1", BookingStatus.CANCELLED)) is False
    assert board.notifier.drain()[-1].message == "Failed to update booking status"


def test_selecting_worker_with_routes_shown_plans_route(fake_store):
    board, planner = _board(fake_store)

    async def scenario():
        await board.load()
        await board.set_show_routes(True)
        await board.select_worker("W1")

    asyncio.run(scenario())

    assert board.selected_worker.id == "W1"
    assert planner.calls == [("W1", ["B1", "B2"], True)]
    assert board.route_view.status is ViewStatus.SUCCESS


def test_hidden_routes_never_plan(fake_store):
    board, planner = _board(fake_store)

    async def scenario():
        await board.load()
        await board.select_worker("W1")

    asyncio.run(scenario())
    assert planner.calls == []
    assert board.route_view.status is ViewStatus.IDLE
    assert board.route_overlay() is None


def test_optimize_toggle_replans_once(fake_store):
    board, planner = _board(fake_store)

    async def scenario():
        await board.load()
        await board.set_show_routes(True)
        await board.select_worker("W1")
        await board.set_optimize_routes(False)
        await board.refresh_route()

    asyncio.run(scenario())
    assert [call[2] for call in planner.calls] == [True, False]


def test_selecting_same_worker_twice_clears_selection(fake_store):
    board, _ = _board(fake_store)

    async def scenario():
        await board.load()
        await board.set_show_routes(True)
        await board.select_worker("W1")
        await board.select_worker("W1")

    asyncio.run(scenario())
    assert board.selected_worker is None
    assert board.route_view.status is ViewStatus.IDLE


def test_selecting_unknown_worker_raises(fake_store):
    board, _ = _board(fake_store)
    with pytest.raises(LookupError):
        asyncio.run(board.select_worker("nope"))


def test_view_toggles(fake_store):
    board, _ = _board(fake_store)
    board.set_view_mode("list")
    board.set_show_traffic(True)
    board.set_show_service_area(False)

    assert board.view_mode == "list"
    assert board.show_traffic is True
    assert board.service_area_overlay() is None
    with pytest.raises(ValueError):
        board.set_view_mode("grid")


def test_start_subscribes_and_stop_releases(fake_store):
    board, _ = _board(fake_store)

    async def scenario():
        async with board.live():
            assert len(board.subscriptions) == 3
            assert all(s.active for s in board.subscriptions)
        return board.subscriptions

    remaining = asyncio.run(scenario())

    assert remaining == []
    assert sorted(fake_store.released) == ["bookings", "worker_locations", "workers"]
    assert fake_store.subscribers["worker_locations"][0][0] == "INSERT"


def test_booking_events_update_collections_and_route(fake_store):
    board, planner = _board(fake_store)

    async def scenario():
        await board.start()
        await board.set_show_routes(True)
        await board.select_worker("W1")

        fake_store.emit("bookings", "INSERT", record=booking_row("B4", status="assigned", worker_id="W1"))
        await board.settle()
        first = list(board.bookings)

        fake_store.emit("bookings", "UPDATE", record=booking_row("B1", status="completed", worker_id="W1"))
        fake_store.emit("bookings", "DELETE", old_record={"id": "B3"})
        await board.settle()
        await board.stop()
        return first

    first = asyncio.run(scenario())

    assert first[0] == "B4"
    assert "B3" not in board.bookings
    assert board.bookings["B1"].status is BookingStatus.COMPLETED
    routed = [call[1] for call in planner.calls]
    assert routed[0] == ["B1", "B2"]
    assert routed[1] == ["B4", "B1", "B2"]
    assert routed[-1] == ["B4", "B2"]


def test_worker_events_and_location_inserts(fake_store):
    board, planner = _board(fake_store)

    async def scenario():
        await board.start()
        await board.set_show_routes(True)
        await board.select_worker("W1")

        fake_store.emit(
            "worker_locations",
            "INSERT",
            record={"worker_id": "W1", "lat": 27.51, "lng": -99.47, "timestamp": "2026-10-19T09:05:00Z"},
        )
        await board.settle()
        moved = board.workers["W1"]

        fake_store.emit("workers", "UPDATE", record=worker_row("W2", status="available"))
        fake_store.emit("workers", "DELETE", old_record={"id": "W1"})
        await board.settle()
        await board.stop()
        return moved

    moved = asyncio.run(scenario())

    assert moved.current_location == Coordinate(lat=27.51, lng=-99.47)
    assert moved.last_location_update == datetime(2026, 10, 19, 9, 5, tzinfo=timezone.utc)
    assert len(planner.calls) == 2
    assert "W1" not in board.workers
    assert board.selected_worker_id is None
    assert [w.id for w in board.available_workers] == ["W2"]
    assert board.route_view.status is ViewStatus.IDLE


def test_invalid_change_events_are_ignored(fake_store):
    board, _ = _board(fake_store)

    async def scenario():
        await board.start()
        fake_store.emit("bookings", "INSERT", record={"id": "B5", "status": "archived"})
        fake_store.emit("worker_locations", "INSERT", record={"worker_id": "W1", "lat": 200, "lng": 0})
        fake_store.emit("worker_locations", "INSERT", record={"worker_id": "W9", "lat": 27.5, "lng": -99.5})
        await board.settle()
        await board.stop()

    asyncio.run(scenario())
    assert "B5" not in board.bookings
    assert board.workers["W1"].current_location == Coordinate(lat=27.50, lng=-99.48)


def test_overlays(fake_store):
    board, _ = _board(fake_store)

    async def scenario():
        await board.load()
        await board.set_show_routes(True)
        await board.select_worker("W1")

    asyncio.run(scenario())

    area = board.service_area_overlay()
    assert area["geometry"]["type"] == "Polygon"
    assert area["properties"] == {"kind": "service_area"}

    overlay = board.route_overlay()
    kinds = [feature["properties"]["kind"] for feature in overlay["features"]]
    assert kinds == ["route", "stop", "stop"]
    assert overlay["features"][0]["geometry"]["type"] == "LineString"
    assert [f["properties"]["sequence"] for f in overlay["features"][1:]] == [1, 2]


def test_route_overlay_hidden_while_next_worker_loads(fake_store):
    fake_store.bookings.append(booking_row("B5", status="assigned", worker_id="W2", lat=27.48, lng=-99.50))

    class GatedPlanner(DummyPlanner):
        def __init__(self):
            super().__init__()
            self.release = asyncio.Event()

        async def plan(self, worker, bookings, optimize, now=None):
            if worker.id == "W2":
                await self.release.wait()
            return await super().plan(worker, bookings, optimize, now)

    planner = GatedPlanner()
    board = DispatchBoard(fake_store, LiveRouteView(planner), Notifier(), clock=lambda: NOW)

    async def scenario():
        await board.load()
        await board.set_show_routes(True)
        await board.select_worker("W1")
        first = board.route_overlay()

        switching = asyncio.create_task(board.select_worker("W2"))
        await asyncio.sleep(0)
        mid_load = (board.route_view.status, board.route_overlay())

        planner.release.set()
        await switching
        return first, mid_load, board.route_overlay()

    first, (status, mid_overlay), final = asyncio.run(scenario())

    assert first["features"][0]["properties"]["worker_id"] == "W1"
    assert status is ViewStatus.LOADING
    assert mid_overlay is None
    stop_ids = [f["properties"]["booking_id"] for f in final["features"] if f["properties"]["kind"] == "stop"]
    assert stop_ids == ["B5"]
    assert final["features"][0]["properties"]["worker_id"] == "W2"


def test_completing_last_booking_moves_route_to_empty_state(fake_store):
    fake_store.bookings = [booking_row("B1", status="in_progress", worker_id="W1")]
    board, planner = _board(fake_store)

    async def scenario():
        await board.start()
        await board.set_show_routes(True)
        await board.select_worker("W1")
        before = board.route_view.status

        fake_store.emit("bookings", "UPDATE", record=booking_row("B1", status="completed", worker_id="W1"))
        await board.settle()
        await board.stop()
        return before

    before = asyncio.run(scenario())

    assert before is ViewStatus.SUCCESS
    assert board.route_view.status is ViewStatus.EMPTY
    assert board.route_view.render().message == "No active bookings"
    assert board.route_overlay() is None
    assert [call[1] for call in planner.calls] == [["B1"], []]
