"""In-memory game registry."""

from dataclasses import dataclass, field

from life4today.domain.games import Game
from life4today.services.games import GameRepository


@dataclass
class InMemoryGameRepository(GameRepository):
    """Keeps games in a process-local dict; contents are lost on restart."""

    games: dict[str, Game] = field(default_factory=dict)

    def add(self, game: Game) -> None:
        self.games[game.id] = game

    def get(self, game_id: str) -> Game | None:
        return self.games.get(game_id)

    def save(self, game: Game) -> None:
        self.games[game.id] = game

    def remove(self, game_id: str) -> None:
        self.games.pop(game_id, None)

    def list_games(self) -> list[Game]:
        return list(self.games.values())

    def count(self) -> int:
        return len(self.games)
