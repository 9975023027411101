import itertools
import math
import random

import pytest

from coinsync.server.simulation import direction_from_input, step
from coinsync.server.world import World
from coinsync.shared.protocol import InputState, Vector2

SPEED = 220.0
ALL_INPUTS = [InputState(*flags) for flags in itertools.product([False, True], repeat=4)]


def make_world(**kwargs):
    kwargs.setdefault("rng", random.Random(1))
    return World(width=800, height=600, agent_radius=15, pickup_radius=8, **kwargs)


@pytest.mark.parametrize("inputs", ALL_INPUTS)
def test_direction_is_unit_or_zero(inputs):
    dx, dy = direction_from_input(inputs)
    length = math.hypot(dx, dy)
    assert length <= 1.0 + 1e-9
    if (inputs.right != inputs.left) or (inputs.down != inputs.up):
        assert length == pytest.approx(1.0)
    else:
        assert length == 0.0


def test_opposite_keys_cancel():
    assert direction_from_input(InputState(up=True, down=True)) == (0.0, 0.0)
    assert direction_from_input(InputState(left=True, right=True, down=True)) == (0.0, 1.0)


def test_diagonal_is_not_faster_than_straight():
    world = make_world()
    straight = world.add_agent(Vector2(400, 300))
    diagonal = world.add_agent(Vector2(200, 200))
    straight.input = InputState(right=True)
    diagonal.input = InputState(right=True, down=True)

    step(world, 0.1, SPEED)

    straight_dist = math.hypot(straight.position.x - 400, straight.position.y - 300)
    diagonal_dist = math.hypot(diagonal.position.x - 200, diagonal.position.y - 200)
    assert straight_dist == pytest.approx(SPEED * 0.1)
    assert diagonal_dist == pytest.approx(SPEED * 0.1)
    assert math.hypot(diagonal.velocity.x, diagonal.velocity.y) == pytest.approx(SPEED)


def test_idle_agent_stays_put():
    world = make_world()
    agent = world.add_agent(Vector2(123.0, 456.0))

    step(world, 0.5, SPEED)

    assert (agent.position.x, agent.position.y) == (123.0, 456.0)
    assert (agent.velocity.x, agent.velocity.y) == (0.0, 0.0)


@pytest.mark.parametrize("delta_time", [0.0, 0.033, 0.5, 10.0, 1000.0])
@pytest.mark.parametrize("inputs", ALL_INPUTS)
def test_agents_never_leave_the_arena(delta_time, inputs):
    world = make_world()
    for start in [(15, 15), (785, 585), (400, 300), (16, 584), (0, 0), (900, -50)]:
        agent = world.add_agent(Vector2(*start))
        agent.input = inputs

    step(world, delta_time, SPEED)

    for agent in world.agents.values():
        assert 15 <= agent.position.x <= 785
        assert 15 <= agent.position.y <= 585


def test_wall_clamp_does_not_slow_the_other_axis():
    world = make_world()
    agent = world.add_agent(Vector2(780, 300))
    agent.input = InputState(right=True, down=True)

    step(world, 0.1, SPEED)

    assert agent.position.x == 785
    assert agent.position.y == pytest.approx(300 + SPEED / math.sqrt(2) * 0.1)


def test_collision_is_boundary_inclusive():
    world = make_world()
    agent = world.add_agent(Vector2(100, 100))
    pickup = world.add_pickup(Vector2(123, 100))  # exactly 15 + 8 away

    events = step(world, 0.0, SPEED)

    assert pickup.id not in world.pickups
    assert agent.score == 1
    assert [(e.pickup_id, e.agent_id, e.new_score) for e in events] == [(pickup.id, agent.id, 1)]


def test_just_out_of_reach_is_not_collected():
    world = make_world()
    agent = world.add_agent(Vector2(100, 100))
    world.add_pickup(Vector2(123.01, 100))

    assert step(world, 0.0, SPEED) == []
    assert agent.score == 0
    assert len(world.pickups) == 1


def test_contested_pickup_goes_to_first_agent_only():
    world = make_world()
    first = world.add_agent(Vector2(110, 100))
    second = world.add_agent(Vector2(136, 100))
    world.add_pickup(Vector2(123, 100))

    events = step(world, 0.0, SPEED)

    assert len(events) == 1
    assert first.score == 1
    assert second.score == 0
    assert world.pickups == {}


def test_one_agent_can_take_several_pickups_in_a_tick():
    world = make_world()
    agent = world.add_agent(Vector2(300, 300))
    world.add_pickup(Vector2(310, 300))
    world.add_pickup(Vector2(300, 290))
    far = world.add_pickup(Vector2(600, 500))

    step(world, 0.0, SPEED)

    assert agent.score == 2
    assert list(world.pickups) == [far.id]


def test_pickups_are_resolved_after_movement():
    world = make_world()
    agent = world.add_agent(Vector2(100, 100))
    agent.input = InputState(right=True)
    world.add_pickup(Vector2(140, 100))  # 40 away, reach is 23

    step(world, 0.1, SPEED)  # moves 22px -> 18 away

    assert agent.score == 1
    assert world.pickups == {}
