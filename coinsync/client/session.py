"""
Client-side view of the game: who we are, how many are connected, and
the interpolation state. Fed one server message at a time from the
render thread, so the buffers are never read and written at once.
"""

from typing import Any, Dict, List, Optional, Tuple

from ..shared.constants import WORLD_WIDTH, WORLD_HEIGHT
from ..shared.protocol import Message, MessageType, ProtocolError, Snapshot
from .clock import local_time_ms
from .interpolation import InterpolationManager, Sample


_MISSING = object()


def _number(data: Dict[str, Any], key: str, kinds, default=_MISSING):
    """Numeric field from a payload, or ProtocolError. bools don't count."""
    value = data.get(key, default)
    if value is _MISSING:
        raise ProtocolError(f"missing {key}")
    if isinstance(value, bool) or not isinstance(value, kinds):
        raise ProtocolError(f"{key} is not a number: {value!r}")
    return value


class ClientSession:
    """Everything the client knows about the match, minus the pixels."""

    def __init__(self, interpolation: Optional[InterpolationManager] = None):
        self.interpolation = interpolation or InterpolationManager()

        self.your_id: Optional[int] = None
        self.world_width = WORLD_WIDTH
        self.world_height = WORLD_HEIGHT
        self.lag_ms = 0
        self.player_count = 0
        self.status = "Connecting..."

        # Latest scores, straight from the last snapshot
        self.scores: Dict[int, int] = {}

    def handle_message(self, message: Message, local_now_ms: Optional[float] = None):
        """Dispatch one server message."""
        if local_now_ms is None:
            local_now_ms = local_time_ms()

        try:
            if message.type == MessageType.INIT:
                self.handle_init(message.data)

            elif message.type == MessageType.PLAYER_COUNT:
                self.handle_player_count(message.data)

            elif message.type == MessageType.STATE:
                self.handle_snapshot(Snapshot.from_dict(message.data), local_now_ms)

            else:
                # Unknown (or client->server) types are ignored
                pass
        except ProtocolError as e:
            print(f"[CLIENT] Dropping bad {message.type.value} message: {e}")

    def handle_init(self, data: Dict[str, Any]):
        your_id = _number(data, "yourId", int)
        world = data.get("world", {})
        if not isinstance(world, dict):
            raise ProtocolError("world is not an object")
        width = _number(world, "width", (int, float), self.world_width)
        height = _number(world, "height", (int, float), self.world_height)
        if width <= 0 or height <= 0:
            raise ProtocolError(f"bad world size {width}x{height}")
        lag_ms = _number(data, "lagMs", (int, float), 0)

        # Only commit once the whole payload checked out
        self.your_id = your_id
        self.world_width, self.world_height = width, height
        self.lag_ms = lag_ms
        self.status = f"Connected as Player {self.your_id}. Start another client for a 2-player demo."
        print(f"[CLIENT] Assigned player ID: {self.your_id} (server lag {self.lag_ms}ms)")

    def handle_player_count(self, data: Dict[str, Any]):
        self.player_count = _number(data, "count", int, 0)
        if self.player_count < 2:
            self.status = f"Waiting for players... ({self.player_count}/2)"
        else:
            self.status = f"Players connected: {self.player_count}"

    def display_size(self) -> Tuple[int, int]:
        """Window size matching the world the server announced."""
        return int(self.world_width), int(self.world_height)

    def handle_snapshot(self, snapshot: Snapshot, local_now_ms: float):
        self.interpolation.process_snapshot(snapshot, local_now_ms)
        self.scores = {p.id: p.score for p in snapshot.players}

    def score_lines(self) -> List[str]:
        """'Player N (You): score' lines, best first."""
        ranked = sorted(self.scores.items(), key=lambda item: item[1], reverse=True)
        lines = []
        for agent_id, score in ranked:
            me = " (You)" if agent_id == self.your_id else ""
            lines.append(f"Player {agent_id}{me}: {score}")
        return lines

    def render_states(self, local_now_ms: Optional[float] = None) -> Dict[int, Sample]:
        if local_now_ms is None:
            local_now_ms = local_time_ms()
        return self.interpolation.get_render_states(local_now_ms)
