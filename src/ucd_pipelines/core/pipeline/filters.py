# src/ucd_pipelines/core/pipeline/filters.py
"""
Predicados de filtro de arquivos e linhas.

Filtros são comportamento, não dados: cada filtro é uma função
`(FilterContext) -> bool` criada por uma fábrica deste módulo e
composta com `and_`, `or_` e `not_`.

Exemplo:

    route_filter = and_(by_dir("ucd"), by_ext(".txt"), not_(by_glob("**/*Test*")))

Invariantes:
    - Filtros não possuem estado nem efeitos colaterais
    - `and_()` vazio aceita tudo; `or_()` vazio rejeita tudo
    - `by_prop` rejeita quando não há contexto de linha
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, Pattern, Union

import pathspec

from .types import FilterContext

PipelineFilter = Callable[[FilterContext], bool]


def by_name(name: str) -> PipelineFilter:
    """Nome exato do arquivo (sensível a maiúsculas)."""
    return lambda ctx: ctx.file.name == name


def by_dir(directory: str) -> PipelineFilter:
    return lambda ctx: ctx.file.dir == directory


def by_ext(ext: str) -> PipelineFilter:
    """Extensão com ou sem ponto; `""` casa apenas arquivos sem extensão."""
    expected = ext if (not ext or ext.startswith(".")) else f".{ext}"
    return lambda ctx: ctx.file.ext == expected


def by_glob(pattern: str) -> PipelineFilter:
    """Padrão gitwildmatch aplicado a `file.path` (ex.: `**/*.txt`, `ucd/{A,B}*.txt`)."""
    spec = pathspec.PathSpec.from_lines("gitwildmatch", _expand_braces(pattern))
    return lambda ctx: spec.match_file(ctx.file.path)


def by_path(path: Union[str, Pattern[str]]) -> PipelineFilter:
    """Caminho exato, ou regex compilada aplicada com `search`."""
    if isinstance(path, str):
        return lambda ctx: ctx.file.path == path
    return lambda ctx: path.search(ctx.file.path) is not None


def by_prop(prop: Union[str, Pattern[str]]) -> PipelineFilter:
    """Propriedade da linha; falso fora da filtragem por linha."""

    def _check(ctx: FilterContext) -> bool:
        if ctx.row is None or ctx.row.property is None:
            return False
        if isinstance(prop, str):
            return ctx.row.property == prop
        return prop.search(ctx.row.property) is not None

    return _check


def by_source(source_ids: Union[str, Iterable[str]]) -> PipelineFilter:
    ids = {source_ids} if isinstance(source_ids, str) else set(source_ids)
    return lambda ctx: ctx.source is not None and ctx.source in ids


def and_(*filters: PipelineFilter) -> PipelineFilter:
    return lambda ctx: all(f(ctx) for f in filters)


def or_(*filters: PipelineFilter) -> PipelineFilter:
    return lambda ctx: any(f(ctx) for f in filters)


def not_(f: PipelineFilter) -> PipelineFilter:
    return lambda ctx: not f(ctx)


def always(ctx: FilterContext) -> bool:
    return True


def never(ctx: FilterContext) -> bool:
    return False


_BRACE_RE = re.compile(r"\{([^{}]*)\}")


def _expand_braces(pattern: str) -> list:
    # gitwildmatch não expande `{a,b}`; expandimos antes de compilar
    match = _BRACE_RE.search(pattern)
    if match is None:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end():]
    expanded = []
    for option in match.group(1).split(","):
        expanded.extend(_expand_braces(f"{head}{option}{tail}"))
    return expanded
