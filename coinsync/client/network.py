"""
WebSocket network client for the coin arena.
Networking lives on its own thread with its own asyncio loop so the
pygame loop never blocks. Decoded messages are handed over through a
thread-safe queue and consumed on the render thread.
"""

import asyncio
import threading
from typing import Optional, List
from queue import Queue, Empty

import websockets
from websockets.exceptions import ConnectionClosed

from ..shared.constants import SERVER_URL, CLIENT_LAG_MS
from ..shared.latency import Direction, LatencySimulator
from ..shared.protocol import (
    Message, InputState, ProtocolError, create_input_message
)


class NetworkClient:
    """
    Handles WebSocket communication with the game server.
    Runs networking in a separate thread to not block the game loop.
    Optional extra latency goes through the same simulator the server uses.
    """

    def __init__(self, url: str = SERVER_URL, lag_ms: int = CLIENT_LAG_MS):
        self.url = url
        self.websocket = None
        self.connected = False

        # Decoded messages for the game thread
        self.incoming_messages: Queue = Queue()

        self.latency = LatencySimulator(lag_ms, is_alive=lambda _: self.connected,
                                        log_prefix="NETWORK")

        # Threading
        self.network_thread: Optional[threading.Thread] = None
        self.running = False
        self.loop: Optional[asyncio.AbstractEventLoop] = None

        # Only send input when it actually changes
        self.last_sent_input = InputState()

    def connect(self):
        """Start connection to the server in a separate thread."""
        self.running = True
        self.network_thread = threading.Thread(
            target=self._run_network_loop,
            daemon=True
        )
        self.network_thread.start()

    def _run_network_loop(self):
        """Run the asyncio event loop for networking."""
        self.loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.loop)

        try:
            self.loop.run_until_complete(self._connect_and_run())
        except Exception as e:
            print(f"[NETWORK] Error in network loop: {e}")
        finally:
            self.loop.close()

    async def _connect_and_run(self):
        """Connect to server and pump messages until it goes away."""
        print(f"[NETWORK] Connecting to {self.url}...")

        try:
            # Disable ping to avoid timeout issues with latency simulation
            async with websockets.connect(
                self.url,
                ping_interval=None,
                ping_timeout=None
            ) as websocket:
                self.websocket = websocket
                self.connected = True
                print("[NETWORK] Connected!")

                pump = asyncio.create_task(self.latency.run())
                try:
                    await self._receive_loop()
                finally:
                    pump.cancel()
        except ConnectionClosed as e:
            print(f"[NETWORK] Connection closed: {e}")
        except OSError as e:
            print(f"[NETWORK] Connection error: {e}")
        finally:
            self.connected = False

    async def _receive_loop(self):
        """Receive frames from the server and queue them with delay."""
        try:
            async for raw_message in self.websocket:
                self.latency.submit(Direction.INBOUND, self.websocket, raw_message, self._deliver_incoming)
        except ConnectionClosed:
            print("[NETWORK] Connection closed by server")
        self.connected = False

    async def _deliver_incoming(self, _websocket, raw_message):
        """Decode one frame and hand it to the game thread."""
        try:
            message = Message.from_json(raw_message)
        except ProtocolError as e:
            print(f"[NETWORK] Error parsing message: {e}")
            return
        self.incoming_messages.put(message)

    async def _send_now(self, websocket, json_msg: str):
        try:
            await websocket.send(json_msg)
        except ConnectionClosed:
            self.connected = False
        except OSError as e:
            print(f"[NETWORK] Error sending: {e}")

    def _queue_outgoing(self, message: Message):
        """Add message to the delayed outgoing queue (network thread only)."""
        self.latency.submit(Direction.OUTBOUND, self.websocket, message.to_json(), self._send_now)

    def send_input(self, inputs: InputState) -> bool:
        """Queue an input message if the flags changed. Safe from any thread."""
        if not self.connected or self.loop is None:
            return False
        if inputs == self.last_sent_input:
            return False

        self.last_sent_input = InputState(**inputs.to_dict())
        self.loop.call_soon_threadsafe(self._queue_outgoing, create_input_message(inputs))
        return True

    def get_messages(self) -> List[Message]:
        """Get all pending incoming messages (non-blocking)."""
        messages = []
        while True:
            try:
                messages.append(self.incoming_messages.get_nowait())
            except Empty:
                break
        return messages

    def disconnect(self):
        """Disconnect from the server."""
        self.running = False

        if self.loop is not None and self.websocket is not None and self.connected:
            asyncio.run_coroutine_threadsafe(self.websocket.close(), self.loop)
        self.connected = False

        if self.network_thread and self.network_thread.is_alive():
            self.network_thread.join(timeout=1.0)
