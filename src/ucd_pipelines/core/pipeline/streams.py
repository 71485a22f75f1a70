# src/ucd_pipelines/core/pipeline/streams.py
"""
Normalização de sequências de registros e valores possivelmente assíncronos.

Parsers, transforms e resolvers podem ser escritos como funções síncronas
(retornando listas ou geradores) ou assíncronas (coroutines ou async
generators). O engine trabalha apenas com `AsyncIterator`; este módulo faz a
ponte.

Invariantes:
    - Sequências são finitas e de passagem única (não reiniciáveis)
    - Nenhuma função aqui materializa a sequência inteira em memória
"""

from __future__ import annotations

import inspect
from collections.abc import Iterator
from typing import Any, AsyncIterator, List


async def resolve_maybe_awaitable(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


async def as_async_iterator(source: Any) -> AsyncIterator[Any]:
    """
    Converte o retorno de um parser/transform em `AsyncIterator`.

    Aceita async iterable, iterable síncrono ou awaitable que resolva em
    qualquer um dos dois. `None` é tratado como sequência vazia.
    """
    source = await resolve_maybe_awaitable(source)
    if source is None:
        return
    if hasattr(source, "__aiter__"):
        async for item in source:
            yield item
        return
    for item in source:
        yield item


def to_output_list(value: Any) -> List[Any]:
    """
    Normaliza o retorno de um resolver: valor único vira lista de um item.

    Listas, tuplas, geradores e iteradores viram sequência de saídas; dicts e
    strings são sempre um valor único.
    """
    if isinstance(value, list):
        return value
    if isinstance(value, (tuple, Iterator)):
        return list(value)
    return [value]
