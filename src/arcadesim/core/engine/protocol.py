from __future__ import annotations

from typing import Callable, ClassVar, Mapping, Protocol

from arcadesim.core.engine.state import SessionState

Action = Callable[[], None]


class GameEngine(Protocol):
    """
    Capability set every mini-game engine offers.

    Engines:
    - own a SessionState through a SessionLifecycle (composition)
    - mutate state only inside tick() and input handlers
    - expose frozen snapshots for presentation
    """

    game: ClassVar[str]

    @property
    def state(self) -> SessionState:
        ...

    def start(self) -> None:
        ...

    def tick(self, elapsed_ms: float | None = None) -> None:
        ...

    def primary_action(self) -> None:
        ...

    def tick_interval_ms(self) -> float:
        """
        Delay until the next tick should fire (read after every tick).
        """
        ...

    def actions(self) -> Mapping[str, Action]:
        ...

    def snapshot(self) -> object:
        ...

    def close(self) -> None:
        ...
