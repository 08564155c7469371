# src/stackgraph/core/graph/locks.py
"""
Locks exclusivos por identidade de Stack.

Uma execução (apply ou destroy) adquire o lock de todas as Stacks do
deploy durante toda a sua duração. Uma segunda execução sobre qualquer
uma dessas Stacks é recusada imediatamente (`StackLocked`), sem espera:
dois executores nunca disputam a materialização/destruição do mesmo Node.

Por padrão todo Deployment usa o registro do processo (`DEFAULT_STACK_LOCKS`),
de modo que duas execuções sobre uma Stack de mesmo nome se excluem sem
configuração adicional. Um registro próprio pode ser injetado (ex.: testes).
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional

from stackgraph.core.exceptions import StackLocked


class StackLockRegistry:
    """Registro de locks não bloqueantes, tudo-ou-nada, por nome de Stack."""

    def __init__(self) -> None:
        self._held: Dict[str, str] = {}
        self._guard = threading.Lock()

    def acquire(self, stacks: Iterable[str], owner: str) -> None:
        names = sorted(set(stacks))
        with self._guard:
            busy = {name: self._held[name] for name in names if name in self._held}
            if busy:
                raise StackLocked(
                    message=f"Stacks em uso por outra execução: {sorted(busy)}",
                    details={"stacks": sorted(busy), "holders": busy, "requested_by": owner},
                    hint="Aguarde o término da execução em andamento antes de reexecutar.",
                )
            for name in names:
                self._held[name] = owner

    def release(self, stacks: Iterable[str], owner: str) -> None:
        with self._guard:
            for name in set(stacks):
                if self._held.get(name) == owner:
                    del self._held[name]

    def holder(self, stack: str) -> Optional[str]:
        with self._guard:
            return self._held.get(stack)

    def held(self) -> List[str]:
        with self._guard:
            return sorted(self._held)

    @contextmanager
    def hold(self, stacks: Iterable[str], owner: str) -> Iterator[None]:
        names = list(stacks)
        self.acquire(names, owner)
        try:
            yield
        finally:
            self.release(names, owner)


DEFAULT_STACK_LOCKS = StackLockRegistry()
