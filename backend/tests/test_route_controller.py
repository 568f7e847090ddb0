import asyncio

import pytest

from domain.errors import RouteFailed
from domain.models import BrandTag, RouteState
from services.route_controller import RouteController

from fakes import HOME, FakeDirections, north_of, place, ranked


def _p(pid, degrees, name=None):
    return place(pid, name or pid, north_of(HOME, degrees))


def test_states_follow_location_destination_route():
    async def scenario():
        rc = RouteController(FakeDirections())
        states = [rc.state]
        await rc.set_my_location(HOME)
        states.append(rc.state)
        await rc.select_destination(_p("p1", 0.01))
        states.append(rc.state)
        return states

    assert asyncio.run(scenario()) == [
        RouteState.NO_LOCATION,
        RouteState.LOCATED,
        RouteState.ROUTE_READY,
    ]


def test_destination_without_location_waits_for_location():
    async def scenario():
        directions = FakeDirections()
        rc = RouteController(directions)
        await rc.select_destination(_p("p1", 0.01))
        before = (rc.route, len(directions.calls))
        await rc.set_my_location(HOME)
        return rc, before, directions

    rc, before, directions = asyncio.run(scenario())
    assert before == (None, 0)
    assert len(directions.calls) == 1
    assert rc.state == RouteState.ROUTE_READY


def test_route_metrics_sum_legs_and_round():
    async def scenario():
        directions = FakeDirections()
        dest = _p("p1", 0.01)
        directions.results[dest.location] = (12345.0, 1000.0)
        rc = RouteController(directions)
        await rc.set_my_location(HOME)
        await rc.select_destination(dest)
        return rc.route

    route = asyncio.run(scenario())
    assert route.distance_km == 12.3
    assert route.eta_minutes == 17


def test_auto_destination_is_closest_visible_entry():
    async def scenario():
        rc = RouteController(FakeDirections())
        await rc.set_my_location(HOME)
        visible = [ranked("P1", "MOL", 1.2, BrandTag.MOL), ranked("P2", "OMV", 3.4, BrandTag.OMV)]
        await rc.on_destination_missing_from_visible(visible)
        return rc

    rc = asyncio.run(scenario())
    assert rc.destination.id == "P1"


def test_filtered_out_destination_moves_to_first_visible():
    async def scenario():
        rc = RouteController(FakeDirections())
        await rc.set_my_location(HOME)
        p2 = ranked("P2", "OMV", 3.4, BrandTag.OMV)
        await rc.select_destination(p2.place)
        await rc.on_destination_missing_from_visible([ranked("P1", "MOL", 1.2, BrandTag.MOL)])
        return rc

    rc = asyncio.run(scenario())
    assert rc.destination.id == "P1"


def test_destination_still_visible_is_kept():
    async def scenario():
        directions = FakeDirections()
        rc = RouteController(directions)
        await rc.set_my_location(HOME)
        p2 = ranked("P2", "OMV", 3.4)
        await rc.select_destination(p2.place)
        await rc.on_destination_missing_from_visible([ranked("P1", "MOL", 1.2), p2])
        return rc, directions

    rc, directions = asyncio.run(scenario())
    assert rc.destination.id == "P2"
    assert len(directions.calls) == 1


def test_empty_visible_clears_destination_route_and_nearby_count():
    async def scenario():
        rc = RouteController(FakeDirections())
        await rc.set_my_location(HOME)
        await rc.select_destination(_p("p1", 0.01))
        assert rc.route is not None
        await rc.on_destination_missing_from_visible([])
        return rc

    rc = asyncio.run(scenario())
    assert rc.destination is None
    assert rc.route is None
    assert rc.nearby_count([], 5.0) == 0


def test_nearby_count_needs_location_and_ignores_distance_less_entries():
    rc = RouteController(FakeDirections())
    visible = [ranked("a", "A", 1.2), ranked("b", "B", 5.0), ranked("c", "C", 5.1), ranked("d", "D", None)]
    assert rc.nearby_count(visible, 5.0) == 0
    asyncio.run(rc.set_my_location(HOME))
    assert rc.nearby_count(visible, 5.0) == 2


def test_failed_recompute_keeps_previous_route():
    async def scenario():
        directions = FakeDirections()
        rc = RouteController(directions)
        await rc.set_my_location(HOME)
        await rc.select_destination(_p("p1", 0.01))
        good = rc.route
        directions.fail = True
        with pytest.raises(RouteFailed):
            await rc.select_destination(_p("p2", 0.02))
        return rc, good

    rc, good = asyncio.run(scenario())
    assert rc.route == good
    assert rc.destination.id == "p2"
    assert rc.state == RouteState.ROUTE_READY


def test_older_route_resolving_last_is_discarded():
    async def scenario():
        directions = FakeDirections()
        d1, d2 = _p("D1", 0.01), _p("D2", 0.03)
        directions.results[d1.location] = (1000.0, 120.0)
        directions.results[d2.location] = (5000.0, 600.0)
        gate1, gate2 = asyncio.Event(), asyncio.Event()
        directions.gates = {d1.location: gate1, d2.location: gate2}

        rc = RouteController(directions)
        await rc.set_my_location(HOME)
        r1 = asyncio.create_task(rc.select_destination(d1))
        await asyncio.sleep(0)
        r2 = asyncio.create_task(rc.select_destination(d2))
        await asyncio.sleep(0)

        gate2.set()
        await r2
        gate1.set()
        await r1
        return rc

    rc = asyncio.run(scenario())
    assert rc.destination.id == "D2"
    assert rc.route.distance_km == 5.0
    assert rc.route.eta_minutes == 10


def test_superseded_route_is_not_applied_even_if_it_resolves_first():
    async def scenario():
        directions = FakeDirections()
        d1, d2 = _p("D1", 0.01), _p("D2", 0.03)
        gate1, gate2 = asyncio.Event(), asyncio.Event()
        directions.gates = {d1.location: gate1, d2.location: gate2}

        rc = RouteController(directions)
        await rc.set_my_location(HOME)
        r1 = asyncio.create_task(rc.select_destination(d1))
        await asyncio.sleep(0)
        r2 = asyncio.create_task(rc.select_destination(d2))
        await asyncio.sleep(0)

        gate1.set()
        await r1
        route_after_r1 = rc.route
        gate2.set()
        await r2
        return rc, route_after_r1

    rc, route_after_r1 = asyncio.run(scenario())
    assert route_after_r1 is None
    assert rc.route is not None


def test_stale_failure_is_silent():
    async def scenario():
        directions = FakeDirections()
        d1, d2 = _p("D1", 0.01), _p("D2", 0.03)
        gate1 = asyncio.Event()
        directions.gates = {d1.location: gate1}
        directions.fail = True

        rc = RouteController(directions)
        await rc.set_my_location(HOME)
        r1 = asyncio.create_task(rc.select_destination(d1))
        await asyncio.sleep(0)
        directions.fail = False
        await rc.select_destination(d2)
        gate1.set()
        await r1  # would raise RouteFailed if the stale failure surfaced
        return rc

    rc = asyncio.run(scenario())
    assert rc.destination.id == "D2"
    assert rc.route is not None


def test_clear_route_keeps_destination_and_drops_in_flight_result():
    async def scenario():
        directions = FakeDirections()
        d1 = _p("D1", 0.01)
        gate = asyncio.Event()
        directions.gates = {d1.location: gate}
        rc = RouteController(directions)
        await rc.set_my_location(HOME)
        pending = asyncio.create_task(rc.select_destination(d1))
        await asyncio.sleep(0)
        rc.clear_route()
        gate.set()
        await pending
        return rc

    rc = asyncio.run(scenario())
    assert rc.destination.id == "D1"
    assert rc.route is None
    assert rc.state == RouteState.DESTINATION_CHOSEN


def test_on_change_fires_for_destination_and_route():
    events = []

    async def scenario():
        rc = RouteController(FakeDirections(), on_change=lambda: events.append(1))
        await rc.set_my_location(HOME)
        await rc.select_destination(_p("p1", 0.01))

    asyncio.run(scenario())
    assert len(events) == 2


def test_cancel_pending_drops_in_flight_route_and_keeps_destination():
    async def scenario():
        directions = FakeDirections()
        first, second = _p("p1", 0.01), _p("p2", 0.03)
        directions.results[second.location] = (9000.0, 600.0)
        hold = asyncio.Event()
        rc = RouteController(directions)
        await rc.set_my_location(HOME)
        await rc.select_destination(first)
        directions.gates[second.location] = hold
        selecting = asyncio.create_task(rc.select_destination(second))
        while len(directions.calls) < 2:
            await asyncio.sleep(0)
        rc.cancel_pending()
        hold.set()
        await selecting
        return rc

    rc = asyncio.run(scenario())
    assert rc.destination.id == "p2"
    assert rc.route.distance_km == 1.5
