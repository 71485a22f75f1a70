# src/ucd_pipelines/core/pipeline/parsing.py
"""
Parser genérico para arquivos de dados separados por ponto e vírgula.

Formato reconhecido (uma entrada por linha):

    0041..005A    ; Lu      # comentário   → RecordKind.RANGE
    00C5          ; Lu      # comentário   → RecordKind.POINT
    0041 030A     ; 00C5                   → RecordKind.SEQUENCE

Linhas de comentário (`#`) e linhas em branco são ignoradas. O primeiro
campo após o code point vira `property`; com um único campo, `value` é
esse campo, com mais de um, `value` é a lista de campos.

Limites explícitos:
    - Não conhece a semântica de nenhum arquivo específico
    - Linhas sem `;` são ignoradas
"""

from __future__ import annotations

from typing import AsyncIterator, Optional

from .context import ParseContext
from .types import Record, RecordKind


def parse_data_line(line: str, *, source_file: str) -> Optional[Record]:
    data, _, comment = line.partition("#")
    if ";" not in data:
        return None

    fields = [part.strip() for part in data.split(";")]
    head, values = fields[0], fields[1:]
    if not head:
        return None

    meta = {"comment": comment.strip()} if comment.strip() else {}
    value = values[0] if len(values) == 1 else values
    prop = values[0] if values and values[0] else None

    if ".." in head:
        start, _, end = head.partition("..")
        return Record(
            source_file=source_file,
            kind=RecordKind.RANGE,
            start=start.strip(),
            end=end.strip(),
            property=prop,
            value=value,
            meta=meta,
        )

    points = head.split()
    if len(points) > 1:
        return Record(
            source_file=source_file,
            kind=RecordKind.SEQUENCE,
            sequence=points,
            property=prop,
            value=value,
            meta=meta,
        )

    return Record(
        source_file=source_file,
        kind=RecordKind.POINT,
        code_point=head,
        property=prop,
        value=value,
        meta=meta,
    )


async def parse_data_lines(ctx: ParseContext) -> AsyncIterator[Record]:
    async for line in ctx.read_lines():
        if ctx.is_comment(line):
            continue
        record = parse_data_line(line, source_file=ctx.file.path)
        if record is not None:
            yield record
