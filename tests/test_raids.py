"""Tests for raid dispatch, flight, interception and arrival."""

import pytest
from conftest import ScriptedRNG, make_game, neutral_data

from airwar.models.aircraft import AircraftStatus
from airwar.models.raid import RaidStatus
from airwar.util.events import RaidArrived, RaidDispatched, RaidIntercepted


def _planes(services, world, template_id, city_id, team, n):
    return [services.world_service.create_aircraft(world, template_id, city_id, team) for _ in range(n)]


def _launch(services, world, bombers=1, escorts=0, target="Y"):
    """Red dispatches one raid from X; returns (raid, bombers, fighters)."""
    b = _planes(services, world, "tmpl-1", "X", "Red", bombers)
    f = _planes(services, world, "tmpl-0", "X", "Red", escorts)
    world.cities["X"].airbase.escort_allocation = 1.0
    services.production_service.set_bomber_orders(world, "X", target)
    raid = services.raid_service.dispatch_raid(world, world.cities["X"])
    return raid, b, f


class TestDispatch:
    def test_interval_gate(self, game):
        """A base dispatches at most once per raid interval."""
        services, world = game
        rs = services.raid_service
        _planes(services, world, "tmpl-1", "X", "Red", 3)
        services.production_service.set_bomber_orders(world, "X", "Y")

        assert rs.process_dispatch_schedules(world) == []
        world.elapsed_seconds = 20.0
        launched = rs.process_dispatch_schedules(world)
        assert len(launched) == 1
        assert world.last_dispatch == {"X": 20.0}

        _planes(services, world, "tmpl-1", "X", "Red", 1)
        world.elapsed_seconds = 39.9
        assert rs.process_dispatch_schedules(world) == []
        world.elapsed_seconds = 40.0
        assert len(rs.process_dispatch_schedules(world)) == 1

    def test_no_bombers_keeps_timer(self, game):
        """Without bombers the dispatch timer is left alone."""
        services, world = game
        rs = services.raid_service
        services.production_service.set_bomber_orders(world, "X", "Y")
        world.elapsed_seconds = 20.0
        assert rs.process_dispatch_schedules(world) == []
        assert "X" not in world.last_dispatch

        _planes(services, world, "tmpl-1", "X", "Red", 1)
        world.elapsed_seconds = 20.1
        assert len(rs.process_dispatch_schedules(world)) == 1
        assert world.last_dispatch["X"] == 20.1

    def test_raid_contents(self, game):
        """A raid carries every idle bomber plus the escort share."""
        services, world = game
        dispatched = []
        services.event_bus.on(RaidDispatched, dispatched.append)
        bombers = _planes(services, world, "tmpl-1", "X", "Red", 2)
        fighters = _planes(services, world, "tmpl-0", "X", "Red", 5)
        services.production_service.set_bomber_orders(world, "X", "Y")
        world.elapsed_seconds = 12.5

        raid = services.raid_service.dispatch_raid(world, world.cities["X"])
        assert raid.id == "raid-0"
        assert raid.team == "Red"
        assert raid.bomber_ids == [b.id for b in bombers]
        # int(5 * 0.5) escorts
        assert raid.escort_ids == [f.id for f in fighters[:2]]
        assert raid.distance == pytest.approx(556.0, abs=1.0)
        assert raid.start_time == 12.5
        assert raid.status == RaidStatus.ENROUTE
        assert all(a.status == AircraftStatus.ON_RAID for a in bombers + fighters[:2])
        assert all(f.status == AircraftStatus.IDLE for f in fighters[2:])
        assert dispatched[0].bombers == 2 and dispatched[0].escorts == 2

    def test_escorts_prefer_long_range(self, game):
        """Escorts are picked longest range first."""
        services, world = game
        ws = services.world_service
        long_range = ws.create_template(world, "Red", {"type": "fighter", "cost_m": 1,
                                                       "range_points": 80, "offense": 10, "defense": 10})
        short_range = ws.create_template(world, "Red", {"type": "fighter", "cost_m": 1,
                                                        "range_points": 20, "offense": 10, "defense": 10})
        _planes(services, world, "tmpl-1", "X", "Red", 1)
        f0 = ws.create_aircraft(world, "tmpl-0", "X", "Red")
        f1 = ws.create_aircraft(world, long_range.id, "X", "Red")
        ws.create_aircraft(world, short_range.id, "X", "Red")
        f3 = ws.create_aircraft(world, long_range.id, "X", "Red")
        services.production_service.set_bomber_orders(world, "X", "Y")

        raid = services.raid_service.dispatch_raid(world, world.cities["X"])
        assert raid.escort_ids == [f1.id, f3.id]
        assert f0.status == AircraftStatus.IDLE


class TestFlight:
    def test_progress_advances(self, game):
        """Raid progress grows with flight time."""
        services, world = game
        raid, _, _ = _launch(services, world)
        services.raid_service.move_raids(world, 100.0)
        expected = (100.0 / 60000.0) / (raid.distance / 500.0)
        assert raid.progress == pytest.approx(expected)

    def test_progress_clamped(self, game):
        """Progress stops at 1.0."""
        services, world = game
        raid, _, _ = _launch(services, world)
        services.raid_service.move_raids(world, 10 * 60000.0)
        assert raid.progress == 1.0


class TestInterception:
    def test_midpoint_without_defenders(self, game):
        """Passing the midpoint with no defenders draws nothing."""
        services, world = game
        raid, _, _ = _launch(services, world)
        raid.progress = 0.5
        world.rng = ScriptedRNG([])
        services.raid_service.resolve_in_air_encounters(world)
        assert raid.status == RaidStatus.ENGAGING
        assert raid.has_engaged_defenders

    def test_bombers_without_escort(self, game):
        """Unescorted bombers face the interceptors directly."""
        services, world = game
        intercepted = []
        services.event_bus.on(RaidIntercepted, intercepted.append)
        raid, bombers, _ = _launch(services, world)
        _planes(services, world, "tmpl-0", "Y", "Blue", 4)
        raid.progress = 0.6
        # p_loss = 60 / (20 + 60 + 1) * 0.3
        world.rng = ScriptedRNG([0.1])
        services.raid_service.resolve_in_air_encounters(world)
        assert not bombers[0].alive
        assert intercepted[0].defenders == 2
        assert intercepted[0].bomber_losses == 1
        assert intercepted[0].team == "Red" and intercepted[0].defender_team == "Blue"

    def test_escorts_fight_first(self, game):
        """Escorts engage the interceptors before the bombers do."""
        services, world = game
        intercepted = []
        services.event_bus.on(RaidIntercepted, intercepted.append)
        raid, bombers, escorts = _launch(services, world, bombers=1, escorts=2)
        defenders = _planes(services, world, "tmpl-0", "Y", "Blue", 4)[:2]
        raid.progress = 0.5
        # Both defenders shot down, escorts survive; no bomber roll follows
        world.rng = ScriptedRNG([0.0, 0.0, 0.99, 0.99])
        services.raid_service.resolve_in_air_encounters(world)
        assert all(not d.alive for d in defenders)
        assert all(e.alive for e in escorts) and bombers[0].alive
        assert world.rng.draws == 4
        assert (intercepted[0].defender_losses, intercepted[0].escort_losses) == (2, 0)

    def test_engages_once(self, game):
        """A raid is intercepted at most once."""
        services, world = game
        raid, _, _ = _launch(services, world)
        _planes(services, world, "tmpl-0", "Y", "Blue", 4)
        raid.progress = 0.5
        world.rng = ScriptedRNG([0.99])
        services.raid_service.resolve_in_air_encounters(world)
        raid.progress = 0.7
        services.raid_service.resolve_in_air_encounters(world)
        assert world.rng.draws == 1

    def test_no_interception_over_friendly_target(self, game):
        """Raids on friendly cities are never intercepted."""
        services, world = game
        raid, _, _ = _launch(services, world)
        _planes(services, world, "tmpl-0", "Y", "Blue", 4)
        world.cities["Y"].owner = "Red"
        raid.progress = 0.5
        world.rng = ScriptedRNG([])
        services.raid_service.resolve_in_air_encounters(world)
        assert raid.has_engaged_defenders


class TestArrival:
    def test_bombing_and_return(self, game):
        """Survivors bomb the target and fly home."""
        services, world = game
        arrived = []
        services.event_bus.on(RaidArrived, arrived.append)
        raid, bombers, _ = _launch(services, world, bombers=1)
        raid.progress = 1.0
        world.rng = ScriptedRNG([0.1, 0.5])
        services.raid_service.resolve_arrivals(world)
        assert world.cities["Y"].hp == 96.0
        assert arrived[0].damage == 4
        assert world.raids == []
        assert raid.status == RaidStatus.COMPLETED
        assert bombers[0].status == AircraftStatus.IDLE
        assert bombers[0].location_city_id == "X"

    def test_friendly_target_not_attacked(self, game):
        """Arriving over a friendly city does no damage."""
        services, world = game
        raid, bombers, _ = _launch(services, world)
        world.cities["Y"].owner = "Red"
        raid.progress = 1.0
        world.rng = ScriptedRNG([])
        services.raid_service.resolve_arrivals(world)
        assert world.cities["Y"].hp == 100.0
        assert bombers[0].status == AircraftStatus.IDLE

    def test_survivors_lost_when_home_captured(self, game):
        """Survivors are lost when their home base falls."""
        services, world = game
        raid, bombers, escorts = _launch(services, world, bombers=1, escorts=1)
        services.combat_service.capture_city(world, world.cities["X"], "Blue")
        assert bombers[0].alive
        raid.progress = 1.0
        world.rng = ScriptedRNG([0.9, 0.9])
        services.raid_service.resolve_arrivals(world)
        assert not bombers[0].alive
        assert not escorts[0].alive

    def test_neutral_target_joins_enemy(self):
        """Bombing a neutral target flips its country to the enemy."""
        services, world = make_game(neutral_data())
        arrived = []
        services.event_bus.on(RaidArrived, arrived.append)
        raid, _, _ = _launch(services, world, bombers=2, target="N1")
        raid.progress = 1.0
        world.rng = ScriptedRNG([0.0, 0.9, 0.0, 0.9])
        services.raid_service.resolve_arrivals(world)
        assert arrived[0].damage == 0
        assert world.rng.draws == 4
        assert world.cities["N1"].owner == "Blue"
        assert world.cities["N2"].owner == "Blue"
        assert world.cities["N1"].hp == 100.0

    def test_capture_by_bombing(self, game):
        """Bombing HP below zero captures the city."""
        services, world = game
        raid, _, _ = _launch(services, world, bombers=1)
        world.cities["Y"].hp = -98.0
        raid.progress = 1.0
        world.rng = ScriptedRNG([0.0, 0.9])
        services.raid_service.resolve_arrivals(world)
        assert world.cities["Y"].owner == "Red"
        assert world.cities["Y"].hp == 0.0


class TestCancel:
    def test_cancel_returns_aircraft_without_draws(self, game):
        """Cancelling brings aircraft home without consuming draws."""
        services, world = game
        raid, bombers, escorts = _launch(services, world, bombers=2, escorts=2)
        raid.progress = 0.3
        world.rng = ScriptedRNG([])
        assert services.raid_service.cancel_raid(world, raid.id)
        assert world.raids == []
        assert all(a.status == AircraftStatus.IDLE for a in bombers + escorts)
        assert not services.raid_service.cancel_raid(world, raid.id)

    def test_cancel_unknown(self, game):
        """Unknown raids cannot be cancelled."""
        services, world = game
        assert not services.raid_service.cancel_raid(world, "raid-42")
