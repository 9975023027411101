"""
Authoritative game server for the coin arena.
Owns the world, runs the fixed-rate tick, and pushes a full snapshot to
every connection after each tick. Every frame in or out goes through
the latency simulator first.
"""

import argparse
import asyncio
import time
from typing import Any, Callable, Optional

import websockets
from websockets.asyncio.server import ServerConnection
from websockets.exceptions import ConnectionClosed

from ..shared.constants import (
    SERVER_HOST, SERVER_PORT, LAG_MS, TICK_RATE, PLAYER_SPEED,
    MAX_TICK_DELTA, TICK_LOG_INTERVAL
)
from ..shared.latency import Direction, LatencySimulator
from ..shared.protocol import (
    Message, MessageType, InputState, ProtocolError, Snapshot,
    create_init_message, create_player_count_message, create_state_message
)
from .registry import ConnectionRegistry
from .simulation import step
from .spawner import PickupSpawner
from .world import World


def server_time_ms() -> int:
    """Server logical clock: wall time in whole milliseconds."""
    return int(time.time() * 1000)


class GameServer:
    """
    Main game server class.
    Handles client connections and maintains authoritative game state.
    Everything runs on one asyncio loop, so the world needs no locking.
    """

    def __init__(self, host: str = SERVER_HOST, port: int = SERVER_PORT,
                 lag_ms: int = LAG_MS, tick_rate: float = TICK_RATE,
                 speed: float = PLAYER_SPEED, world: Optional[World] = None,
                 spawner: Optional[PickupSpawner] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.host = host
        self.port = port
        self.lag_ms = lag_ms
        self.tick_interval = 1.0 / tick_rate
        self.speed = speed
        self.clock = clock

        self.world = world or World()
        self.registry = ConnectionRegistry(self.world)
        self.spawner = spawner or PickupSpawner(self.world)

        # A connection counts as alive for exactly as long as it's registered
        self.latency = LatencySimulator(lag_ms, is_alive=self.registry.__contains__,
                                        log_prefix="SERVER")

        self.tick_count = 0
        self.last_tick_time = self.clock()

        print(f"[SERVER] Initialized with {lag_ms}ms simulated latency each way")

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def send_to_client(self, connection: Any, message: Message):
        """Send a message to one connection with simulated latency."""
        self.latency.submit(Direction.OUTBOUND, connection, message.to_json(), self._send_now)

    def broadcast(self, message: Message):
        """Send the same message to every connection with simulated latency."""
        # Serialize once; every connection gets the identical frame
        data = message.to_json()
        for connection in self.registry.connections():
            self.latency.submit(Direction.OUTBOUND, connection, data, self._send_now)

    async def _send_now(self, connection: Any, data: str):
        """Actually write a frame (called after the latency delay)."""
        try:
            await connection.send(data)
        except ConnectionClosed:
            # Closed under us; the handler's finally will clean up
            pass
        except OSError as e:
            print(f"[SERVER] Error sending: {e}")

    def broadcast_player_count(self):
        self.broadcast(create_player_count_message(len(self.registry)))

    def broadcast_state(self) -> Snapshot:
        """Build one snapshot of the current world and send it to everyone."""
        snapshot = self.world.snapshot(server_time_ms())
        self.broadcast(create_state_message(snapshot))
        return snapshot

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def on_connect(self, connection: Any):
        """Register a new connection, greet it, and tell everyone."""
        existing = self.registry.find(connection)
        if existing is not None:
            return existing

        agent = self.registry.register(connection)
        print(f"[SERVER] Agent {agent.id} connected. Total agents: {len(self.registry)}")

        self.send_to_client(connection, create_init_message(
            agent.id, self.world.width, self.world.height, self.lag_ms
        ))
        self.broadcast_player_count()
        return agent

    def on_disconnect(self, connection: Any):
        """Drop a connection's agent. Does nothing if it's already gone."""
        agent = self.registry.unregister(connection)
        if agent is None:
            return None

        print(f"[SERVER] Agent {agent.id} disconnected. Total agents: {len(self.registry)}")
        self.broadcast_player_count()
        return agent

    async def handle_connection(self, websocket: ServerConnection):
        """Handle a new WebSocket connection."""
        print(f"[SERVER] New connection from {websocket.remote_address}")
        self.on_connect(websocket)

        try:
            async for raw_message in websocket:
                # Queue message with latency instead of processing directly
                self.latency.submit(Direction.INBOUND, websocket, raw_message, self._process_message)
        except ConnectionClosed:
            pass
        finally:
            self.on_disconnect(websocket)

    async def _process_message(self, connection: Any, raw_message):
        """Actually process a message (called after latency delay)."""
        try:
            message = Message.from_json(raw_message)
        except ProtocolError as e:
            print(f"[SERVER] Invalid message received: {e}")
            return

        agent = self.registry.find(connection)
        if agent is None:
            return

        if message.type == MessageType.INPUT:
            self.world.set_input(agent.id, InputState.from_dict(message.data))

        else:
            # UNKNOWN, or a server->client type coming the wrong way; ignore
            pass

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    def tick(self, delta_time: float) -> Snapshot:
        """One simulation step followed by one broadcast."""
        events = step(self.world, delta_time, self.speed)
        for event in events:
            print(f"[SERVER] Agent {event.agent_id} collected coin {event.pickup_id}! "
                  f"Score: {event.new_score}")

        self.tick_count += 1
        if self.tick_count % TICK_LOG_INTERVAL == 0:
            print(f"[SERVER] Tick {self.tick_count}: {len(self.world.agents)} agents, "
                  f"{len(self.world.pickups)} coins")

        return self.broadcast_state()

    def run_tick(self) -> float:
        """Tick with the time elapsed since the last one. Returns the tick's start time."""
        current_time = self.clock()

        # Long stalls get clamped so nobody teleports across the map
        delta_time = min(current_time - self.last_tick_time, MAX_TICK_DELTA)
        self.last_tick_time = current_time

        self.tick(delta_time)
        return current_time

    async def game_loop(self):
        """Main game loop - steps the world and broadcasts at a fixed rate."""
        self.last_tick_time = self.clock()

        while True:
            current_time = self.run_tick()

            # Sleep for what's left of the tick interval
            elapsed = self.clock() - current_time
            await asyncio.sleep(max(0, self.tick_interval - elapsed))

    async def start(self):
        """Start the game server."""
        print(f"[SERVER] Starting on ws://{self.host}:{self.port}")

        tasks = [
            asyncio.create_task(self.latency.run()),
            asyncio.create_task(self.game_loop()),
            asyncio.create_task(self.spawner.run()),
        ]

        # Ping disabled; keepalives would be held back by the fake lag too
        try:
            async with websockets.serve(
                self.handle_connection,
                self.host,
                self.port,
                ping_interval=None,
                ping_timeout=None
            ):
                print("[SERVER] Listening for connections...")
                await asyncio.Future()  # Run forever
        finally:
            for task in tasks:
                task.cancel()


def main(argv=None):
    """Entry point for the server."""
    parser = argparse.ArgumentParser(description="Authoritative coin arena server")
    parser.add_argument("--host", default=SERVER_HOST)
    parser.add_argument("--port", type=int, default=SERVER_PORT)
    parser.add_argument("--lag-ms", type=int, default=LAG_MS,
                        help="artificial latency applied in each direction")
    args = parser.parse_args(argv)

    print("=" * 50)
    print("  COIN ARENA - Authoritative Game Server")
    print("=" * 50)

    server = GameServer(host=args.host, port=args.port, lag_ms=args.lag_ms)
    try:
        asyncio.run(server.start())
    except KeyboardInterrupt:
        print("[SERVER] Shutting down")


if __name__ == "__main__":
    main()
