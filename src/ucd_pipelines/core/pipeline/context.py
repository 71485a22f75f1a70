# src/ucd_pipelines/core/pipeline/context.py
"""
Contextos de execução do pipeline.

Este módulo define os três contextos canônicos usados durante uma run:

    - VersionContext → estado explícito de uma versão (artefatos, logs, warnings)
    - ParseContext   → acesso ao conteúdo de um arquivo para o parser
    - ResolveContext → API exposta ao resolver de uma rota

O VersionContext é o único meio permitido de troca de informação entre
rotas: artefatos emitidos por uma rota ficam guardados até o fim da camada
e só então ficam disponíveis, por chave explícita `"<routeId>:<nome>"`,
para as rotas de camadas posteriores.

Decisões arquiteturais:
    - Artefatos de uma versão vivem apenas durante aquela versão
    - Artefatos `global` vivem numa tabela compartilhada pela run
    - Nenhum lock protege a tabela de artefatos: a separação em camadas
      garante que o produtor termina antes de qualquer consumidor começar
    - Logs são estruturados e sempre carregam `version` e `route_id`

Invariantes:
    - `get_artifact` de chave ausente retorna None (nunca levanta)
    - Todo nome emitido é publicado; a declaração em `emits` só define
      validador e escopo (e habilita dependências `artifact:`)
    - Artefatos emitidos numa camada não são visíveis na mesma camada
    - Validadores de artefato rodam no momento da emissão

Limites explícitos:
    - Não executa rotas
    - Não emite eventos diretamente (o engine drena `pending_events`)
    - Não persiste nada
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Sequence, Tuple

from ucd_pipelines.core.exceptions import ArtifactValidationError

from .route import ArtifactDefinition
from .streams import as_async_iterator, resolve_maybe_awaitable
from .types import FileIdentity, normalize_entries


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# VersionContext
# ---------------------------------------------------------------------------

@dataclass
class VersionContext:
    """
    Estado explícito de uma versão durante a run.

    Decisões arquiteturais:
        - Cada versão possui um VersionContext próprio
        - `global_artifacts` é a mesma tabela para todas as versões da run
        - Logs e warnings são agregados no RunResult ao final

    Limites explícitos:
        - Não decide ordem de execução
        - Não valida semântica de domínio
    """

    run_id: str
    version: str
    global_artifacts: Dict[str, Any] = field(default_factory=dict)

    _artifacts: Dict[str, Any] = field(default_factory=dict, init=False, repr=False)
    _staged: List[Tuple[str, Any, bool]] = field(default_factory=list, init=False, repr=False)
    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    # -----------------------------
    # Artifact store
    # -----------------------------
    def set_artifact(self, key: str, value: Any, *, is_global: bool = False) -> None:
        if is_global:
            self.global_artifacts[key] = value
        else:
            self._artifacts[key] = value

    def has_artifact(self, key: str) -> bool:
        return key in self._artifacts or key in self.global_artifacts

    def get_artifact(self, key: str) -> Any:
        if key in self._artifacts:
            return self._artifacts[key]
        return self.global_artifacts.get(key)

    def artifact_keys(self) -> List[str]:
        return sorted(set(self._artifacts) | set(self.global_artifacts))

    def stage_emitted(
        self,
        route_id: str,
        emitted: Mapping[str, Any],
        definitions: Mapping[str, ArtifactDefinition],
    ) -> List[str]:
        """
        Guarda artefatos emitidos por uma rota até o fim da camada.

        Nada fica visível em `get_artifact` antes de `publish_staged`; rotas
        da mesma camada nunca leem artefatos umas das outras.
        """
        keys = []
        for name, value in emitted.items():
            key = f"{route_id}:{name}"
            definition = definitions.get(name)
            self._staged.append((key, value, bool(definition and definition.is_global)))
            keys.append(key)
        return keys

    def publish_staged(self) -> List[str]:
        """Publica os artefatos guardados, na ordem em que foram emitidos."""
        staged, self._staged = self._staged, []
        for key, value, is_global in staged:
            self.set_artifact(key, value, is_global=is_global)
        return [key for key, _, _ in staged]

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, route_id: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "version": self.version,
            "route_id": route_id,
            "level": level,
            "message": message,
            "timestamp": utc_now_iso(),
        }
        event.update(extra)
        self.events.append(event)

    def add_warning(self, *, route_id: str, message: str) -> None:
        self.warnings.setdefault(route_id, []).append(message)


# ---------------------------------------------------------------------------
# ParseContext
# ---------------------------------------------------------------------------

class ParseContext:
    """
    Acesso de leitura ao arquivo em processamento.

    `read_lines()` usa `read_file_stream` do backend quando disponível,
    decodificando UTF-8 de forma incremental; caso contrário recorre a
    `read_file`. `read_content()` lê o arquivo inteiro uma única vez por
    contexto.
    """

    def __init__(self, file: FileIdentity, backend: Any, *, chunk_size: Optional[int] = None):
        self.file = file
        self._backend = backend
        self._chunk_size = chunk_size
        self._content: Optional[str] = None

    async def read_content(self) -> str:
        if self._content is None:
            self._content = await resolve_maybe_awaitable(self._backend.read_file(self.file))
        return self._content

    async def read_lines(self) -> AsyncIterator[str]:
        stream = getattr(self._backend, "read_file_stream", None)
        if self._content is not None or stream is None:
            for line in (await self.read_content()).splitlines():
                yield line
            return

        decoder = codecs.getincrementaldecoder("utf-8")()
        buffer = ""
        async for chunk in as_async_iterator(stream(self.file, chunk_size=self._chunk_size)):
            buffer += decoder.decode(chunk)
            lines = buffer.splitlines(keepends=True)
            buffer = ""
            # a última linha pode estar incompleta (ou ser um `\r` antes de `\n`)
            if lines and not lines[-1].endswith("\n"):
                buffer = lines.pop()
            for line in lines:
                yield line.rstrip("\r\n")
        buffer += decoder.decode(b"", final=True)
        for line in buffer.splitlines():
            yield line

    @staticmethod
    def is_comment(line: str) -> bool:
        return line.startswith("#") or line.strip() == ""


# ---------------------------------------------------------------------------
# ResolveContext
# ---------------------------------------------------------------------------

class ResolveContext:
    """
    API exposta ao resolver de uma rota (ou ao fallback).

    - `get_artifact(key)`: valor de um artefato já publicado, ou None
    - `emit_artifact(name, value)`: registra `"<rota>:<nome>"` para camadas posteriores
    - `normalize_entries(entries)`: ordenação estável pelo code point inicial
    - `now()`: instante atual em ISO-8601 (UTC)

    Eventos `artifact:produced` / `artifact:consumed` são acumulados em
    `pending_events` e emitidos pelo engine, preservando a ordem.
    """

    def __init__(
        self,
        *,
        version: str,
        file: Optional[FileIdentity],
        route_id: str,
        version_ctx: VersionContext,
        definitions: Optional[Mapping[str, ArtifactDefinition]] = None,
    ):
        self.version = version
        self.file = file
        self.route_id = route_id
        self._version_ctx = version_ctx
        self._definitions = dict(definitions or {})
        self.emitted: Dict[str, Any] = {}
        self.consumed: List[str] = []
        self.pending_events: List[Tuple[str, str]] = []

    def get_artifact(self, key: str) -> Any:
        if not self._version_ctx.has_artifact(key):
            return None
        if key not in self.consumed:
            self.consumed.append(key)
            self.pending_events.append(("artifact:consumed", key))
        return self._version_ctx.get_artifact(key)

    def emit_artifact(self, name: str, value: Any) -> None:
        definition = self._definitions.get(name)
        if definition is not None and definition.validator is not None:
            try:
                accepted = definition.validator(value)
            except Exception as exc:
                raise ArtifactValidationError(
                    message=f'Artifact "{name}" validation failed: {exc}',
                    details={"route_id": self.route_id, "artifact": name},
                ) from exc
            if not accepted:
                raise ArtifactValidationError(
                    message=f'Artifact "{name}" validation failed',
                    details={"route_id": self.route_id, "artifact": name},
                )
        self.emitted[name] = value
        self.pending_events.append(("artifact:produced", f"{self.route_id}:{name}"))

    def normalize_entries(self, entries: Sequence[Any]) -> List[Any]:
        return normalize_entries(entries)

    def now(self) -> str:
        return utc_now_iso()

    def log(self, level: str, message: str, **extra: Any) -> None:
        self._version_ctx.log(route_id=self.route_id, level=level, message=message, **extra)

    def drain_events(self) -> List[Tuple[str, str]]:
        events, self.pending_events = self.pending_events, []
        return events
