"""
Network protocol definitions for client-server messages.
Message types, dataclasses, and helper factory functions.

Every message is one flat JSON object; the "type" field says what
the rest of the fields mean.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
import json


class ProtocolError(ValueError):
    """Raised when an inbound frame can't be decoded into a Message."""


class MessageType(str, Enum):
    """All possible message types in the protocol."""

    # Client -> Server messages
    INPUT = "input"                  # Client sends its movement intent

    # Server -> Client messages
    INIT = "init"                    # Sent once on connect: your id, world size, lag
    PLAYER_COUNT = "player_count"    # Population changed
    STATE = "state"                  # Full world snapshot, once per tick

    # Anything we don't recognise lands here and gets ignored
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value):
        return cls.UNKNOWN


@dataclass
class Vector2:
    """2D vector/position."""
    x: float
    y: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}

    @staticmethod
    def from_dict(data: Dict[str, float]) -> "Vector2":
        return Vector2(x=float(data["x"]), y=float(data["y"]))


@dataclass
class InputState:
    """The four movement flags a client holds down."""
    up: bool = False
    down: bool = False
    left: bool = False
    right: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return {
            "up": self.up,
            "down": self.down,
            "left": self.left,
            "right": self.right
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "InputState":
        # Missing flags count as released
        return InputState(
            up=bool(data.get("up", False)),
            down=bool(data.get("down", False)),
            left=bool(data.get("left", False)),
            right=bool(data.get("right", False))
        )


@dataclass
class PlayerState:
    """State of a single agent as it goes over the wire."""
    id: int
    position: Vector2
    score: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "x": self.position.x,
            "y": self.position.y,
            "score": self.score
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "PlayerState":
        return PlayerState(
            id=int(data["id"]),
            position=Vector2.from_dict(data),
            score=int(data["score"])
        )


@dataclass
class CoinState:
    """State of a single pickup."""
    id: int
    position: Vector2

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "x": self.position.x,
            "y": self.position.y
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "CoinState":
        return CoinState(
            id=int(data["id"]),
            position=Vector2.from_dict(data)
        )


@dataclass(frozen=True)
class Snapshot:
    """Complete world state at one server time (ms since epoch)."""
    server_time: int
    players: List[PlayerState] = field(default_factory=list)
    coins: List[CoinState] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "serverTime": self.server_time,
            "players": [p.to_dict() for p in self.players],
            "coins": [c.to_dict() for c in self.coins]
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Snapshot":
        try:
            return Snapshot(
                server_time=int(data["serverTime"]),
                players=[PlayerState.from_dict(p) for p in data.get("players", [])],
                coins=[CoinState.from_dict(c) for c in data.get("coins", [])]
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ProtocolError(f"bad state payload: {e!r}") from e


class Message:
    """Base message class for all network communication."""

    def __init__(self, msg_type: MessageType, data: Optional[Dict[str, Any]] = None):
        self.type = msg_type
        self.data = data or {}

    def to_json(self) -> str:
        """Serialize message to a flat JSON object."""
        return json.dumps({"type": self.type.value, **self.data})

    @staticmethod
    def from_json(json_str) -> "Message":
        """
        Deserialize message from JSON text.
        Raises ProtocolError for anything that isn't an object with a
        string "type". Unknown types come back as MessageType.UNKNOWN.
        """
        try:
            obj = json.loads(json_str)
        except (json.JSONDecodeError, TypeError, UnicodeDecodeError) as e:
            raise ProtocolError(f"invalid JSON: {e}") from e
        except RecursionError as e:
            # Absurdly nested arrays/objects blow the decoder's stack
            raise ProtocolError("JSON nested too deeply") from e

        if not isinstance(obj, dict):
            raise ProtocolError("message is not a JSON object")

        msg_type = obj.pop("type", None)
        if not isinstance(msg_type, str):
            raise ProtocolError("message has no type")

        return Message(msg_type=MessageType(msg_type), data=obj)


# =============================================================================
# MESSAGE FACTORIES - Convenience functions to create specific messages
# =============================================================================

def create_init_message(player_id: int, width: int, height: int, lag_ms: int) -> Message:
    """Create the one-off init message for a fresh connection."""
    return Message(MessageType.INIT, {
        "yourId": player_id,
        "world": {"width": width, "height": height},
        "lagMs": lag_ms
    })


def create_player_count_message(count: int) -> Message:
    """Create a population update message."""
    return Message(MessageType.PLAYER_COUNT, {"count": count})


def create_state_message(snapshot: Snapshot) -> Message:
    """Create a full world state message."""
    return Message(MessageType.STATE, snapshot.to_dict())


def create_input_message(inputs: InputState) -> Message:
    """Create an input message with the current movement flags."""
    return Message(MessageType.INPUT, inputs.to_dict())
