# src/ucd_pipelines/core/pipeline/types.py
"""
Tipos canônicos do pipeline do UCD Pipelines.

Este módulo define as estruturas imutáveis que padronizam a comunicação
entre fontes, rotas, engine e rastreabilidade:

    - FileIdentity  → identidade de um arquivo dentro de uma versão
    - SourceFile    → FileIdentity anotada com a fonte que o forneceu
    - RowContext    → contexto de linha (propriedade) para filtros por linha
    - FilterContext → entrada única dos predicados de filtro
    - RecordKind    → classificação de uma linha parseada
    - Record        → linha parseada, efêmera, produzida pelo parser

Invariantes:
    - `FileIdentity` é imutável e hashable
    - `path` é único dentro de uma versão após o merge de fontes
    - Valores de enum são strings estáveis (serialização em eventos e Manifest)

Limites explícitos:
    - Não lê arquivos
    - Não conhece gramáticas de formatos específicos
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional, Sequence, Union


@dataclass(frozen=True)
class FileIdentity:
    """
    Identidade de um arquivo de entrada dentro de uma versão.

    Campos:
        - version: versão do corpus (ex.: "16.0.0")
        - dir: categoria de diretório (ex.: ucd, extracted, emoji, unihan)
        - path: caminho relativo à raiz da versão (ex.: "ucd/LineBreak.txt")
        - name: nome do arquivo (ex.: "LineBreak.txt")
        - ext: extensão com ponto (ex.: ".txt"), vazia se não houver
    """

    version: str
    dir: str
    path: str
    name: str
    ext: str

    @classmethod
    def from_path(cls, version: str, path: str, *, dir: Optional[str] = None) -> "FileIdentity":
        """Deriva `dir`, `name` e `ext` de um caminho relativo POSIX."""
        pure = PurePosixPath(path)
        category = dir
        if category is None:
            category = pure.parts[0] if len(pure.parts) > 1 else "ucd"
        return cls(version=version, dir=category, path=str(pure), name=pure.name, ext=pure.suffix)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SourceFile(FileIdentity):
    """FileIdentity anotada com o id da fonte que forneceu o arquivo."""

    source_id: str = ""

    @classmethod
    def tag(cls, file: FileIdentity, source_id: str) -> "SourceFile":
        return cls(
            version=file.version,
            dir=file.dir,
            path=file.path,
            name=file.name,
            ext=file.ext,
            source_id=source_id,
        )


@dataclass(frozen=True)
class RowContext:
    """Contexto de linha usado na filtragem por propriedade."""

    property: Optional[str] = None


@dataclass(frozen=True)
class FilterContext:
    """
    Entrada dos predicados de filtro.

    Durante o roteamento de arquivos apenas `file` (e `source`, se houver)
    está definido; durante a filtragem de linhas `row` também é preenchido.
    """

    file: FileIdentity
    row: Optional[RowContext] = None
    source: Optional[str] = None


class RecordKind(str, Enum):
    """Classificação de uma linha parseada."""

    RANGE = "range"
    POINT = "point"
    SEQUENCE = "sequence"
    ALIAS = "alias"


@dataclass
class Record:
    """
    Linha parseada de um arquivo do corpus.

    Existe apenas durante o processamento de uma unidade (rota, arquivo).
    Code points são strings hexadecimais (ex.: "0041").
    """

    source_file: str
    kind: RecordKind
    value: Union[str, List[str], None] = None
    start: Optional[str] = None
    end: Optional[str] = None
    code_point: Optional[str] = None
    sequence: Optional[List[str]] = None
    property: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)


def _field(entry: Any, name: str) -> Any:
    if isinstance(entry, dict):
        return entry.get(name)
    return getattr(entry, name, None)


def entry_sort_key(entry: Any) -> str:
    """
    Chave de ordenação de uma entrada resolvida.

    Usa o início de `range` ("0041..005A"), depois `start`, depois
    `code_point`. A comparação é lexicográfica sobre o texto hexadecimal,
    não numérica, para preservar a ordem histórica das saídas.
    """
    range_value = _field(entry, "range")
    if isinstance(range_value, str) and range_value:
        return range_value.split("..")[0]
    for name in ("start", "code_point", "codePoint"):
        value = _field(entry, name)
        if isinstance(value, str) and value:
            return value
    return ""


def normalize_entries(entries: Sequence[Any]) -> List[Any]:
    """Ordenação estável, determinística e idempotente por `entry_sort_key`."""
    return sorted(entries, key=entry_sort_key)
