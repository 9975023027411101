"""
The authoritative simulation step.
Moves every agent from its input, keeps it inside the arena, then hands
out pickups. Works only on the World it's given, so it can be driven
from tests without a server.
"""

import math
from dataclasses import dataclass
from typing import List, Tuple

from ..shared.constants import PLAYER_SPEED
from ..shared.protocol import InputState, Vector2
from .world import World


@dataclass
class PickupCollected:
    """Emitted once per pickup consumed during a step."""
    pickup_id: int
    agent_id: int
    new_score: int


def direction_from_input(inputs: InputState) -> Tuple[float, float]:
    """
    Unit direction for a set of held keys, or (0, 0).
    Diagonals get normalized so they aren't sqrt(2) faster.
    """
    dx = float(inputs.right) - float(inputs.left)
    dy = float(inputs.down) - float(inputs.up)

    length = math.hypot(dx, dy)
    if length > 0:
        dx /= length
        dy /= length
    return dx, dy


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def move_agents(world: World, delta_time: float, speed: float = PLAYER_SPEED):
    """Integrate every agent's position for `delta_time` seconds."""
    r = world.agent_radius
    for agent in world.agents.values():
        dx, dy = direction_from_input(agent.input)
        agent.velocity = Vector2(dx * speed, dy * speed)

        new_x = agent.position.x + agent.velocity.x * delta_time
        new_y = agent.position.y + agent.velocity.y * delta_time

        # Hard stop at the walls, each axis on its own
        agent.position.x = clamp(new_x, r, world.width - r)
        agent.position.y = clamp(new_y, r, world.height - r)


def resolve_pickups(world: World) -> List[PickupCollected]:
    """
    Check agent/pickup overlaps and award points.
    Agents are visited in join order and a pickup is removed the moment it's
    taken, so the first agent to reach it wins and it can't be counted twice.
    """
    events = []
    reach = world.agent_radius + world.pickup_radius

    for agent in world.agents.values():
        for pickup_id, pickup in list(world.pickups.items()):
            distance = math.hypot(
                agent.position.x - pickup.position.x,
                agent.position.y - pickup.position.y
            )
            if distance <= reach:
                del world.pickups[pickup_id]
                agent.score += 1
                events.append(PickupCollected(pickup_id, agent.id, agent.score))

    return events


def step(world: World, delta_time: float, speed: float = PLAYER_SPEED) -> List[PickupCollected]:
    """Advance the world by one tick. Returns the pickups collected."""
    move_agents(world, delta_time, speed)
    return resolve_pickups(world)
