"""
Connection registry: which socket drives which agent.
Registering creates the agent in the world, unregistering removes it,
so the agent count always matches the live connection count.
"""

from typing import Any, Dict, List, Optional

from .world import Agent, World


class ConnectionRegistry:
    """Maps each transport connection 1:1 onto its agent."""

    def __init__(self, world: World):
        self.world = world
        self._agents: Dict[Any, int] = {}  # connection -> agent id

    def __len__(self) -> int:
        return len(self._agents)

    def __contains__(self, connection) -> bool:
        return connection in self._agents

    def register(self, connection) -> Agent:
        """Create an agent for a freshly accepted connection."""
        existing = self.find(connection)
        if existing is not None:
            return existing

        agent = self.world.add_agent()
        self._agents[connection] = agent.id
        return agent

    def unregister(self, connection) -> Optional[Agent]:
        """
        Drop a connection and its agent.
        Safe to call twice: the second call just returns None.
        """
        agent_id = self._agents.pop(connection, None)
        if agent_id is None:
            return None
        return self.world.remove_agent(agent_id)

    def find(self, connection) -> Optional[Agent]:
        """Agent owned by `connection`, or None if it isn't registered."""
        agent_id = self._agents.get(connection)
        if agent_id is None:
            return None
        return self.world.get_agent(agent_id)

    def connections(self) -> List[Any]:
        """Snapshot of the live connections, in join order."""
        return list(self._agents)
