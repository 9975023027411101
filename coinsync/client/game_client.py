"""
Main game client for the coin arena.
Integrates Pygame rendering, networking and interpolation. The client
never simulates anything itself: it sends key state and draws what the
server said, a little in the past.
"""

import sys

import pygame

from ..shared.constants import SERVER_URL, WORLD_WIDTH, WORLD_HEIGHT, CLIENT_FPS
from ..shared.protocol import InputState
from .network import NetworkClient
from .renderer import GameRenderer
from .session import ClientSession


# Key -> InputState field
KEY_BINDINGS = {
    pygame.K_w: "up", pygame.K_UP: "up",
    pygame.K_s: "down", pygame.K_DOWN: "down",
    pygame.K_a: "left", pygame.K_LEFT: "left",
    pygame.K_d: "right", pygame.K_RIGHT: "right",
}


class CoinArenaClient:
    """Main game client class."""

    def __init__(self, url: str = SERVER_URL):
        self.url = url

        # Initialize Pygame
        pygame.init()
        pygame.display.set_caption("Coin Arena")
        self.screen = pygame.display.set_mode((WORLD_WIDTH, WORLD_HEIGHT))
        self.clock = pygame.time.Clock()

        # Initialize components
        self.renderer = GameRenderer(self.screen)
        self.network = NetworkClient(url)
        self.session = ClientSession()

        self.inputs = InputState()
        self.running = True

    def start(self):
        """Kick things off for the client."""
        print(f"[CLIENT] Starting, server {self.url}")
        self.network.connect()
        self.run()

    def run(self):
        """Main loop: events, network, draw. One pass per display frame."""
        while self.running:
            self.handle_events()
            self.process_network_messages()
            self.render()

            pygame.display.flip()
            self.clock.tick(CLIENT_FPS)

        self.cleanup()

    def handle_events(self):
        """Handle Pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False

            elif event.type in (pygame.KEYDOWN, pygame.KEYUP):
                if event.key == pygame.K_ESCAPE:
                    self.running = False
                    continue

                field = KEY_BINDINGS.get(event.key)
                if field is None:
                    continue
                setattr(self.inputs, field, event.type == pygame.KEYDOWN)
                self.network.send_input(self.inputs)

    def process_network_messages(self):
        """Apply whatever the network thread has delivered so far."""
        for message in self.network.get_messages():
            self.session.handle_message(message)
        self.sync_window()

        if not self.network.connected and self.session.your_id is not None:
            self.session.status = "Disconnected from server."

    def sync_window(self):
        """Resize the window once the server has told us how big the world is."""
        size = self.session.display_size()
        if size != self.screen.get_size():
            self.screen = pygame.display.set_mode(size)
            self.renderer = GameRenderer(self.screen)

    def render(self):
        self.renderer.render_frame(
            self.session.render_states(),
            self.session.interpolation.coins,
            self.session.your_id,
            self.session.status,
            self.session.score_lines()
        )

    def cleanup(self):
        """Clean up resources."""
        print("[CLIENT] Shutting down...")
        self.network.disconnect()
        pygame.quit()


def main():
    """Entry point for the client."""
    url = sys.argv[1] if len(sys.argv) > 1 else SERVER_URL

    print("=" * 50)
    print("  COIN ARENA - Game Client")
    print(f"  Server: {url}")
    print("=" * 50)

    client = CoinArenaClient(url)
    client.start()


if __name__ == "__main__":
    main()
