from __future__ import annotations

import abc

from hybridgomoku.agent.types import Candidate
from hybridgomoku.game.board import GomokuGameState


class Agent(abc.ABC):
    @abc.abstractmethod
    async def select_move(self, game_state: GomokuGameState) -> Candidate:
        """Return the move this agent wants to play for the side to move."""

    def new_game(self) -> None:
        """Forget per-game state. Stateless agents have nothing to reset."""

    @property
    def name(self) -> str:
        return self.__class__.__name__
