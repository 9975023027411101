"""
Pygame renderer for the coin arena.
Draws the arena, coins, agents and the two text lines. Knows nothing
about the network; it's handed positions that are already interpolated.
"""

import pygame
from typing import Dict, Iterable, List, Optional

from ..shared.constants import PLAYER_RADIUS, COIN_RADIUS
from ..shared.protocol import CoinState
from .interpolation import Sample


# Color definitions
BACKGROUND_COLOR = (34, 34, 34)
BORDER_COLOR = (85, 85, 85)
TEXT_COLOR = (255, 255, 255)
HINT_COLOR = (150, 150, 150)
COIN_COLOR = (255, 215, 0)  # Gold
LOCAL_COLOR = (76, 175, 80)    # You: green
REMOTE_COLOR = (33, 150, 243)  # Everyone else: blue


class GameRenderer:
    """Handles all Pygame rendering for the game."""

    def __init__(self, screen: pygame.Surface):
        self.screen = screen
        self.width = screen.get_width()
        self.height = screen.get_height()

        # Initialize fonts
        pygame.font.init()
        self.font_medium = pygame.font.Font(None, 24)
        self.font_small = pygame.font.Font(None, 18)

    def render_background(self):
        """Fill and outline the arena."""
        self.screen.fill(BACKGROUND_COLOR)
        pygame.draw.rect(self.screen, BORDER_COLOR, (0, 0, self.width, self.height), 2)

    def render_coin(self, coin: CoinState):
        x, y = int(coin.position.x), int(coin.position.y)
        pygame.draw.circle(self.screen, COIN_COLOR, (x, y), COIN_RADIUS)

    def render_player(self, agent_id: int, state: Sample, is_local: bool = False):
        """Render an agent circle with its P<id> label."""
        x, y = int(state.x), int(state.y)
        color = LOCAL_COLOR if is_local else REMOTE_COLOR

        pygame.draw.circle(self.screen, color, (x, y), PLAYER_RADIUS)

        # Outline local player
        if is_local:
            pygame.draw.circle(self.screen, TEXT_COLOR, (x, y), PLAYER_RADIUS, 3)

        label = self.font_small.render(f"P{agent_id}", True, TEXT_COLOR)
        label_rect = label.get_rect(centerx=x, bottom=y - PLAYER_RADIUS - 3)
        self.screen.blit(label, label_rect)

    def render_frame(self, states: Dict[int, Sample], coins: Iterable[CoinState],
                     local_id: Optional[int], status: str, scores: List[str]):
        """Draw one whole frame."""
        self.render_background()

        for coin in coins:
            self.render_coin(coin)

        for agent_id, state in states.items():
            self.render_player(agent_id, state, is_local=(agent_id == local_id))

        # If we only have one player, nudge the user to open another client
        if len(states) <= 1:
            hint = self.font_medium.render("Start another client to connect Player 2", True, TEXT_COLOR)
            self.screen.blit(hint, hint.get_rect(centerx=self.width // 2, y=20))

        status_surface = self.font_small.render(status, True, HINT_COLOR)
        self.screen.blit(status_surface, (10, self.height - 40))

        scores_surface = self.font_small.render(" | ".join(scores), True, TEXT_COLOR)
        self.screen.blit(scores_surface, (10, self.height - 20))
