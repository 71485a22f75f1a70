# src/ucd_pipelines/core/engine/engine.py
"""
Engine de execução do UCD Pipelines (planner + scheduler).

Para cada versão, em sequência:

    1. resolve o conjunto de arquivos das fontes (última fonte vence por path)
    2. constrói os artefatos de nível de pipeline
    3. percorre as camadas do DAG; dentro de uma camada, cada par
       (rota, arquivo) é uma tarefa admitida pela fila com limite de concorrência
    4. varre os arquivos que nenhuma rota aceitou (fallback, strict ou skip)

Decisões arquiteturais:
    - O DAG é validado na construção do `Pipeline`; erros de definição nunca
      aparecem no meio de uma run
    - Toda rota cujo filtro aceita um arquivo roda sobre ele; não existe
      "primeira rota vence"
    - Falhas de rota/arquivo/artefato viram `RunError` na fronteira da tarefa
      e a run continua
    - Versões nunca rodam em paralelo entre si
    - Artefatos são lidos sem lock: uma camada só começa depois que a
      anterior drenou por completo
    - Artefatos emitidos numa camada são publicados só depois que ela drena;
      rotas irmãs nunca veem as emissões umas das outras

Ajustes de cache:
    - A chave usa o hash do conteúdo (metadata do backend, ou SHA-256 do texto)
    - Uma entrada cujo artefato consumido mudou é tratada como miss
    - `run(cache=False)` não lê nem escreve o store
"""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ucd_pipelines.core.cache.store import CacheEntry, CacheKey, CacheStore, MemoryCacheStore, hash_artifact
from ucd_pipelines.core.config.hashing import compute_content_hash
from ucd_pipelines.core.errors import (
    RunError,
    artifact_build_error,
    fallback_execution_error,
    no_matching_route,
    route_execution_error,
    version_execution_error,
)
from ucd_pipelines.core.exceptions import SourceNotFoundError
from ucd_pipelines.core.pipeline.context import ParseContext, ResolveContext, VersionContext, utc_now_iso
from ucd_pipelines.core.pipeline.filters import PipelineFilter
from ucd_pipelines.core.pipeline.registry import PipelineRegistry
from ucd_pipelines.core.pipeline.route import (
    FALLBACK_ROUTE_ID,
    FallbackDefinition,
    PipelineArtifactDefinition,
    RouteDefinition,
    TransformContext,
    apply_transforms,
)
from ucd_pipelines.core.pipeline.source import SourceDefinition, resolve_multiple_source_files
from ucd_pipelines.core.pipeline.streams import as_async_iterator, resolve_maybe_awaitable, to_output_list
from ucd_pipelines.core.pipeline.types import FileIdentity, FilterContext, RowContext, SourceFile
from ucd_pipelines.core.traceability.events import EventEmitter, EventObserver, EventType
from ucd_pipelines.core.traceability.provenance import EdgeType, ProvenanceGraph

from .planner import get_execution_layers, plan_execution
from .queue import ProcessingQueue
from .results import RunResult, RunSummary


@dataclass(frozen=True)
class PipelineDefinition:
    """
    Declaração completa de um pipeline.

    Campos:
        - id: identificador do pipeline
        - versions: versões processadas por padrão
        - inputs: fontes de arquivos (ordem importa para o merge)
        - routes: rotas (a ordem declarada não define a ordem de execução)
        - fallback: tratador para arquivos sem rota
        - include: filtro global aplicado antes do roteamento
        - strict: arquivo sem rota nem fallback vira erro de escopo `file`
        - concurrency: máximo de tarefas (rota, arquivo) simultâneas
        - on_event: observador do stream de eventos
        - artifacts: artefatos de nível de pipeline, construídos por versão
    """

    id: str
    versions: Sequence[str]
    inputs: Sequence[SourceDefinition]
    routes: Sequence[RouteDefinition]
    fallback: Optional[FallbackDefinition] = None
    include: Optional[PipelineFilter] = None
    strict: bool = False
    concurrency: int = 4
    on_event: Optional[EventObserver] = None
    artifacts: Sequence[PipelineArtifactDefinition] = ()


@dataclass
class _RunState:
    run_id: str
    emitter: EventEmitter
    graph: ProvenanceGraph
    use_cache: bool
    global_artifacts: Dict[str, Any] = field(default_factory=dict)
    outputs: List[Any] = field(default_factory=list)
    errors: List[RunError] = field(default_factory=list)
    logs: List[Dict[str, Any]] = field(default_factory=list)
    warnings: Dict[str, List[str]] = field(default_factory=dict)
    total_files: int = 0
    matched_files: int = 0
    skipped_files: int = 0
    fallback_files: int = 0
    cache_hits: int = 0
    cache_misses: int = 0

    def record_output(self, output: Any, *, version: str, parent_node: str) -> None:
        index = len(self.outputs)
        self.outputs.append(output)
        prop = output.get("property") if isinstance(output, dict) else getattr(output, "property", None)
        node_id = self.graph.add_output_node(index, version, prop if isinstance(prop, str) else None)
        self.graph.add_edge(parent_node, node_id, EdgeType.RESOLVED)

    async def record_error(self, error: RunError, *, span_id: Optional[str] = None) -> None:
        self.errors.append(error)
        await self.emitter.emit(EventType.ERROR, span_id=span_id, version=error.version, error=error)


def _row_property(row: Any) -> Optional[str]:
    if isinstance(row, dict):
        return row.get("property")
    return getattr(row, "property", None)


async def _filter_rows(rows: Any, file: FileIdentity, row_filter: Optional[PipelineFilter], counter: List[int]):
    """Conta todas as linhas parseadas e descarta as rejeitadas pelo filtro de linha."""
    async for row in as_async_iterator(rows):
        counter[0] += 1
        if row_filter is None:
            yield row
            continue
        source = getattr(file, "source_id", None) or None
        if row_filter(FilterContext(file=file, row=RowContext(property=_row_property(row)), source=source)):
            yield row


async def _collect_outputs(value: Any) -> List[Any]:
    value = await resolve_maybe_awaitable(value)
    if hasattr(value, "__aiter__"):
        return [item async for item in value]
    return to_output_list(value)


def _filter_ctx(file: FileIdentity) -> FilterContext:
    return FilterContext(file=file, source=getattr(file, "source_id", None) or None)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0


class Pipeline:
    """
    Pipeline validado, pronto para executar.

    Raises:
        PipelineDefinitionError: Na construção, se o DAG de rotas for inválido.
        DuplicateSourceIdError: Se duas fontes compartilharem o mesmo id.
        ValueError: Se `concurrency` < 1.
    """

    def __init__(self, definition: PipelineDefinition, *, cache_store: Optional[CacheStore] = None):
        if not isinstance(definition.concurrency, int) or definition.concurrency < 1:
            raise ValueError("concurrency must be an integer >= 1")

        self.definition = definition
        self.registry = PipelineRegistry()
        for source in definition.inputs:
            self.registry.add_source(source)
        for route in definition.routes:
            self.registry.add_route(route)

        self.dag = plan_execution(self.registry.routes())
        self.layers = get_execution_layers(self.dag)
        self._routes: Dict[str, RouteDefinition] = {r.id: r for r in self.registry.routes()}
        self.cache_store: CacheStore = cache_store if cache_store is not None else MemoryCacheStore()

    @property
    def id(self) -> str:
        return self.definition.id

    @property
    def execution_order(self) -> List[str]:
        return list(self.dag.execution_order)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self, *, cache: bool = True, versions: Optional[Sequence[str]] = None) -> RunResult:
        run_versions = list(versions if versions is not None else self.definition.versions)
        state = _RunState(
            run_id=uuid.uuid4().hex,
            emitter=EventEmitter(self.definition.on_event),
            graph=ProvenanceGraph(),
            use_cache=bool(cache) and self.cache_store is not None,
        )

        started = time.perf_counter()
        span = state.emitter.next_span_id()
        await state.emitter.emit(EventType.PIPELINE_START, span_id=span, versions=run_versions)

        for version in run_versions:
            await self._run_version(version, state)

        duration_ms = _elapsed_ms(started)
        await state.emitter.emit(EventType.PIPELINE_END, span_id=span, duration_ms=duration_ms)

        return RunResult(
            pipeline_id=self.definition.id,
            run_id=state.run_id,
            outputs=state.outputs,
            provenance=state.graph,
            errors=state.errors,
            summary=RunSummary(
                versions=run_versions,
                total_files=state.total_files,
                matched_files=state.matched_files,
                skipped_files=state.skipped_files,
                fallback_files=state.fallback_files,
                total_outputs=len(state.outputs),
                duration_ms=duration_ms,
                cache_hits=state.cache_hits,
                cache_misses=state.cache_misses,
                error_count=len(state.errors),
            ),
            events=list(state.emitter.events),
            logs=state.logs,
            warnings=state.warnings,
        )

    async def _run_version(self, version: str, state: _RunState) -> None:
        started = time.perf_counter()
        span = state.emitter.next_span_id()
        await state.emitter.emit(EventType.VERSION_START, span_id=span, version=version)

        vctx = VersionContext(run_id=state.run_id, version=version, global_artifacts=state.global_artifacts)
        source_node = state.graph.add_source_node(version)

        try:
            files = await resolve_multiple_source_files(self.definition.inputs, version)
            await self._build_artifacts(version, files, vctx, state, source_node)
            state.total_files += len(files)

            to_process: List[SourceFile] = []
            for file in files:
                if self.definition.include is None or self.definition.include(_filter_ctx(file)):
                    to_process.append(file)
                else:
                    state.skipped_files += 1
                    await state.emitter.emit(
                        EventType.FILE_SKIPPED, span_id=span, version=version, file=file, reason="filtered"
                    )

            matched = set()
            for layer in self.layers:
                queue = ProcessingQueue(self.definition.concurrency)
                for route_id in layer:
                    route = self._routes[route_id]
                    for file in to_process:
                        if not route.filter(_filter_ctx(file)):
                            continue
                        matched.add(file.path)
                        await queue.add(
                            lambda route=route, file=file: self._process_route_file(
                                route, file, vctx, state, source_node
                            )
                        )
                await queue.drain()
                vctx.publish_staged()

            for file in to_process:
                if file.path not in matched:
                    await self._handle_unmatched(file, vctx, state, source_node, span)

        except Exception as exc:
            vctx.log(route_id="-", level="error", message="version aborted", error=str(exc))
            await state.record_error(version_execution_error(version=version, exc=exc), span_id=span)

        state.logs.extend(vctx.events)
        for key, messages in vctx.warnings.items():
            state.warnings.setdefault(key, []).extend(messages)

        await state.emitter.emit(EventType.VERSION_END, span_id=span, version=version, duration_ms=_elapsed_ms(started))

    # ------------------------------------------------------------------
    # Artefatos de pipeline
    # ------------------------------------------------------------------

    async def _build_artifacts(
        self,
        version: str,
        files: Sequence[SourceFile],
        vctx: VersionContext,
        state: _RunState,
        source_node: str,
    ) -> None:
        for definition in self.definition.artifacts:
            started = time.perf_counter()
            span = state.emitter.next_span_id()
            await state.emitter.emit(EventType.ARTIFACT_START, span_id=span, version=version, artifact_id=definition.id)

            node = state.graph.add_artifact_node(definition.id, version)
            state.graph.add_edge(source_node, node, EdgeType.PROVIDES)

            try:
                file = next(
                    (f for f in files if definition.filter is None or definition.filter(_filter_ctx(f))),
                    None,
                )
                rows = None
                if definition.parser is not None and file is not None:
                    rows = as_async_iterator(definition.parser(ParseContext(file, self._backend_for(file))))
                ctx = ResolveContext(version=version, file=file, route_id=definition.id, version_ctx=vctx)
                value = await resolve_maybe_awaitable(definition.build(ctx, rows))
                vctx.set_artifact(definition.id, value)
            except Exception as exc:
                vctx.log(route_id=definition.id, level="error", message="artifact build failed", error=str(exc))
                await state.record_error(
                    artifact_build_error(artifact_id=definition.id, version=version, exc=exc), span_id=span
                )

            await state.emitter.emit(
                EventType.ARTIFACT_END,
                span_id=span,
                version=version,
                artifact_id=definition.id,
                duration_ms=_elapsed_ms(started),
            )

    # ------------------------------------------------------------------
    # Tarefa (rota, arquivo)
    # ------------------------------------------------------------------

    def _backend_for(self, file: FileIdentity) -> Any:
        source_id = getattr(file, "source_id", "")
        try:
            return self.registry.source(source_id).backend
        except KeyError:
            raise SourceNotFoundError(
                message=f"No source registered for file: {file.path}",
                details={"source_id": source_id, "path": file.path},
            ) from None

    async def _content_hash(self, file: FileIdentity) -> str:
        backend = self._backend_for(file)
        get_metadata = getattr(backend, "get_metadata", None)
        if get_metadata is not None:
            metadata = await resolve_maybe_awaitable(get_metadata(file)) or {}
            if metadata.get("hash"):
                return metadata["hash"]
        return compute_content_hash(await resolve_maybe_awaitable(backend.read_file(file)))

    @staticmethod
    def _is_fresh(entry: CacheEntry, vctx: VersionContext) -> bool:
        return all(
            vctx.has_artifact(key) and hash_artifact(vctx.get_artifact(key)) == digest
            for key, digest in entry.artifact_hashes.items()
        )

    async def _process_route_file(
        self,
        route: RouteDefinition,
        file: SourceFile,
        vctx: VersionContext,
        state: _RunState,
        source_node: str,
    ) -> None:
        version = vctx.version
        emitter = state.emitter
        span = emitter.next_span_id()

        file_node = state.graph.add_file_node(file)
        state.graph.add_edge(source_node, file_node, EdgeType.PROVIDES)
        route_node = state.graph.add_route_node(route.id, version)
        state.graph.add_edge(file_node, route_node, EdgeType.MATCHED)
        state.matched_files += 1

        try:
            cache_key: Optional[CacheKey] = None
            if state.use_cache and route.cache:
                cache_key = CacheKey(
                    route_id=route.id, version=version, path=file.path, content_hash=await self._content_hash(file)
                )
                entry = await resolve_maybe_awaitable(self.cache_store.get(cache_key))
                if entry is not None and self._is_fresh(entry, vctx):
                    state.cache_hits += 1
                    await emitter.emit(EventType.CACHE_HIT, span_id=span, version=version, file=file, route_id=route.id)
                    self._stage_artifacts(route, entry.produced_artifacts, vctx, state, route_node)
                    for output in entry.outputs:
                        state.record_output(output, version=version, parent_node=route_node)
                    return
                if entry is not None:
                    vctx.add_warning(route_id=route.id, message=f"stale cache entry for {file.path}")
                state.cache_misses += 1
                await emitter.emit(EventType.CACHE_MISS, span_id=span, version=version, file=file, route_id=route.id)

            await emitter.emit(EventType.FILE_MATCHED, span_id=span, version=version, file=file, route_id=route.id)

            rctx = ResolveContext(
                version=version, file=file, route_id=route.id, version_ctx=vctx, definitions=route.artifacts
            )
            outputs = await self._parse_and_resolve(
                route_id=route.id,
                parser=route.parser,
                resolver=route.resolver,
                row_filter=route.filter,
                transforms=route.transforms,
                file=file,
                rctx=rctx,
                emitter=emitter,
            )

            self._stage_artifacts(route, rctx.emitted, vctx, state, route_node)

            if cache_key is not None:
                await resolve_maybe_awaitable(
                    self.cache_store.put(
                        CacheEntry(
                            key=cache_key,
                            outputs=outputs,
                            produced_artifacts=dict(rctx.emitted),
                            artifact_hashes={
                                key: hash_artifact(vctx.get_artifact(key))
                                for key in rctx.consumed
                                if vctx.has_artifact(key)
                            },
                            created_at=utc_now_iso(),
                        )
                    )
                )
                await emitter.emit(EventType.CACHE_STORE, span_id=span, version=version, file=file, route_id=route.id)

            for output in outputs:
                state.record_output(output, version=version, parent_node=route_node)

        except Exception as exc:
            vctx.log(route_id=route.id, level="error", message="route failed", path=file.path, error=str(exc))
            await state.record_error(
                route_execution_error(route_id=route.id, file=file, version=version, exc=exc), span_id=span
            )

    def _stage_artifacts(
        self,
        route: RouteDefinition,
        emitted: Dict[str, Any],
        vctx: VersionContext,
        state: _RunState,
        route_node: str,
    ) -> None:
        for key in vctx.stage_emitted(route.id, emitted, route.artifacts):
            node = state.graph.add_artifact_node(key, vctx.version)
            state.graph.add_edge(route_node, node, EdgeType.RESOLVED)

    async def _parse_and_resolve(
        self,
        *,
        route_id: str,
        parser: Any,
        resolver: Any,
        row_filter: Optional[PipelineFilter],
        transforms: Sequence[Any],
        file: SourceFile,
        rctx: ResolveContext,
        emitter: EventEmitter,
    ) -> List[Any]:
        """
        parse → transforms → resolve para um arquivo.

        `parse:end` é emitido depois que o resolver consumiu a sequência de
        linhas, para que `row_count` seja exato.
        """
        version = rctx.version
        parse_span = emitter.next_span_id()
        parse_started = time.perf_counter()
        await emitter.emit(EventType.PARSE_START, span_id=parse_span, version=version, file=file, route_id=route_id)

        counter = [0]
        rows: Any = _filter_rows(parser(ParseContext(file, self._backend_for(file))), file, row_filter, counter)
        if transforms:
            rows = apply_transforms(TransformContext(version=version, file=file), rows, transforms)

        resolve_span = emitter.next_span_id()
        resolve_started = time.perf_counter()
        await emitter.emit(EventType.RESOLVE_START, span_id=resolve_span, version=version, file=file, route_id=route_id)

        outputs = await _collect_outputs(resolver(rctx, rows))

        for kind, artifact_id in rctx.drain_events():
            event_type = EventType.ARTIFACT_PRODUCED if kind == "artifact:produced" else EventType.ARTIFACT_CONSUMED
            await emitter.emit(
                event_type, span_id=resolve_span, version=version, route_id=route_id, artifact_id=artifact_id
            )

        await emitter.emit(
            EventType.PARSE_END,
            span_id=parse_span,
            version=version,
            file=file,
            route_id=route_id,
            row_count=counter[0],
            duration_ms=_elapsed_ms(parse_started),
        )
        await emitter.emit(
            EventType.RESOLVE_END,
            span_id=resolve_span,
            version=version,
            file=file,
            route_id=route_id,
            output_count=len(outputs),
            duration_ms=_elapsed_ms(resolve_started),
        )
        return outputs

    # ------------------------------------------------------------------
    # Arquivos sem rota
    # ------------------------------------------------------------------

    async def _handle_unmatched(
        self,
        file: SourceFile,
        vctx: VersionContext,
        state: _RunState,
        source_node: str,
        version_span: str,
    ) -> None:
        version = vctx.version
        fallback = self.definition.fallback

        if fallback is not None:
            if fallback.filter is not None and not fallback.filter(_filter_ctx(file)):
                state.skipped_files += 1
                await state.emitter.emit(
                    EventType.FILE_SKIPPED, span_id=version_span, version=version, file=file, reason="filtered"
                )
                return

            state.fallback_files += 1
            file_node = state.graph.add_file_node(file)
            state.graph.add_edge(source_node, file_node, EdgeType.PROVIDES)
            span = state.emitter.next_span_id()
            await state.emitter.emit(EventType.FILE_FALLBACK, span_id=span, version=version, file=file)
            vctx.add_warning(route_id=FALLBACK_ROUTE_ID, message=f"fallback used for {file.path}")

            try:
                rctx = ResolveContext(version=version, file=file, route_id=FALLBACK_ROUTE_ID, version_ctx=vctx)
                outputs = await self._parse_and_resolve(
                    route_id=FALLBACK_ROUTE_ID,
                    parser=fallback.parser,
                    resolver=fallback.resolver,
                    row_filter=fallback.filter,
                    transforms=(),
                    file=file,
                    rctx=rctx,
                    emitter=state.emitter,
                )
            except Exception as exc:
                vctx.log(route_id=FALLBACK_ROUTE_ID, level="error", message="fallback failed", path=file.path)
                await state.record_error(fallback_execution_error(file=file, version=version, exc=exc), span_id=span)
                return

            for output in outputs:
                state.record_output(output, version=version, parent_node=file_node)
            return

        state.skipped_files += 1
        if self.definition.strict:
            await state.record_error(no_matching_route(file=file, version=version), span_id=version_span)
            return

        await state.emitter.emit(
            EventType.FILE_SKIPPED, span_id=version_span, version=version, file=file, reason="no-match"
        )


def run_pipeline(
    definition: PipelineDefinition,
    *,
    cache_store: Optional[CacheStore] = None,
    cache: bool = True,
    versions: Optional[Sequence[str]] = None,
) -> RunResult:
    """Executa um pipeline até o fim a partir de código síncrono (fora de um event loop)."""
    pipeline = Pipeline(definition, cache_store=cache_store)
    return asyncio.run(pipeline.run(cache=cache, versions=versions))
