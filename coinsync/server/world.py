"""
Server-side world model: authoritative agents and pickups.
Single source of truth for all mutable game data. Nothing outside the
server process touches this, and nothing here is global; the game server
owns one World and passes it around.
"""

import random
from typing import Dict, Optional
from dataclasses import dataclass, field

from ..shared.constants import (
    WORLD_WIDTH, WORLD_HEIGHT, PLAYER_RADIUS, COIN_RADIUS, SPAWN_MARGIN
)
from ..shared.protocol import (
    Vector2, InputState, PlayerState, CoinState, Snapshot
)


@dataclass
class Agent:
    """Server-side agent representation."""
    id: int
    position: Vector2
    velocity: Vector2 = field(default_factory=lambda: Vector2(0, 0))
    score: int = 0
    input: InputState = field(default_factory=InputState)

    def to_state(self) -> PlayerState:
        """Convert to PlayerState for network transmission."""
        return PlayerState(
            id=self.id,
            position=Vector2(self.position.x, self.position.y),
            score=self.score
        )


@dataclass
class Pickup:
    """Server-side pickup (coin) representation. Never moves."""
    id: int
    position: Vector2

    def to_state(self) -> CoinState:
        """Convert to CoinState for network transmission."""
        return CoinState(
            id=self.id,
            position=Vector2(self.position.x, self.position.y)
        )


class World:
    """
    Authoritative world state.
    Agents and pickups are kept in insertion order; the simulation step
    relies on that order to decide who wins a contested pickup.
    """

    def __init__(self, width: float = WORLD_WIDTH, height: float = WORLD_HEIGHT,
                 agent_radius: float = PLAYER_RADIUS, pickup_radius: float = COIN_RADIUS,
                 spawn_margin: float = SPAWN_MARGIN, rng: Optional[random.Random] = None):
        self.width = width
        self.height = height
        self.agent_radius = agent_radius
        self.pickup_radius = pickup_radius
        self.spawn_margin = spawn_margin
        self.rng = rng or random.Random()

        self.agents: Dict[int, Agent] = {}
        self.pickups: Dict[int, Pickup] = {}

        # Ids only go up, never reused
        self.next_agent_id: int = 1
        self.next_pickup_id: int = 1

    def random_position(self, margin: Optional[float] = None) -> Vector2:
        """Uniform random point at least `margin` away from every wall."""
        if margin is None:
            margin = self.spawn_margin
        return Vector2(
            self.rng.uniform(margin, self.width - margin),
            self.rng.uniform(margin, self.height - margin)
        )

    def add_agent(self, position: Optional[Vector2] = None) -> Agent:
        """Add a new agent with zero score at a random valid spot."""
        agent = Agent(
            id=self.next_agent_id,
            position=position or self.random_position()
        )
        self.next_agent_id += 1
        self.agents[agent.id] = agent
        return agent

    def remove_agent(self, agent_id: int) -> Optional[Agent]:
        """Remove an agent from the world."""
        return self.agents.pop(agent_id, None)

    def get_agent(self, agent_id: int) -> Optional[Agent]:
        """Get an agent by ID."""
        return self.agents.get(agent_id)

    def set_input(self, agent_id: int, inputs: InputState) -> bool:
        """Replace an agent's movement intent. Returns False if it's gone."""
        agent = self.agents.get(agent_id)
        if agent is None:
            return False
        agent.input = inputs
        return True

    def add_pickup(self, position: Optional[Vector2] = None) -> Pickup:
        """Spawn a pickup, at a random spot unless told otherwise."""
        pickup = Pickup(
            id=self.next_pickup_id,
            position=position or self.random_position()
        )
        self.next_pickup_id += 1
        self.pickups[pickup.id] = pickup
        return pickup

    def snapshot(self, server_time: int) -> Snapshot:
        """Get current world snapshot for network transmission."""
        return Snapshot(
            server_time=server_time,
            players=[a.to_state() for a in self.agents.values()],
            coins=[c.to_state() for c in self.pickups.values()]
        )
