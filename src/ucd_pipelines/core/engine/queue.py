# src/ucd_pipelines/core/engine/queue.py
"""
Fila de processamento com limite de concorrência.

`add(factory)` aguarda um slot livre e agenda a coroutine produzida por
`factory`; o slot é liberado quando a tarefa termina, admitindo a próxima.
`drain()` bloqueia até que nenhuma tarefa esteja em andamento.

Invariantes:
    - Nunca há mais de `concurrency` tarefas em andamento
    - Exceções não tratadas pelas tarefas são propagadas por `drain()`
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Set


class ProcessingQueue:
    def __init__(self, concurrency: int = 4):
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.concurrency = concurrency
        self._semaphore = asyncio.Semaphore(concurrency)
        self._tasks: Set[asyncio.Task] = set()
        self._failures: List[BaseException] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def add(self, factory: Callable[[], Awaitable[None]]) -> None:
        await self._semaphore.acquire()
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        task = asyncio.ensure_future(self._run(factory))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, factory: Callable[[], Awaitable[None]]) -> None:
        try:
            await factory()
        except Exception as exc:
            self._failures.append(exc)
        finally:
            self.in_flight -= 1
            self._semaphore.release()

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
        if self._failures:
            failure, self._failures = self._failures[0], []
            raise failure
