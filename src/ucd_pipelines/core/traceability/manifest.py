# src/ucd_pipelines/core/traceability/manifest.py
"""
Manifest de run — rastreabilidade forense de execuções do UCD Pipelines.

O Manifest consolida, de forma determinística e auditável:
    - metadados da run (run_id, pipeline_id, started_at, versão do pacote)
    - hash semântico da configuração usada
    - estado incremental de cada versão processada
    - Event Log ordenado
    - resumo e erros do RunResult

Princípios fundamentais:
    - Nenhum evento é registrado implicitamente
    - Toda mutação ocorre por chamadas explícitas da API
    - A ordem do Event Log reflete a ordem real de execução
    - O Manifest é serializável e reconstruível (round-trip)

Decisões arquiteturais:
    - UTC é o timezone canônico para todos os timestamps
    - O formato de persistência é JSON determinístico (`sort_keys=True`)
    - `ManifestRecorder` é um observador de eventos: converte o stream do
      engine em chamadas explícitas desta API

Invariantes:
    - `events` é sempre uma lista ordenada
    - `versions` é sempre um dicionário indexado por versão

Limites explícitos:
    - Não executa pipeline
    - Não decide políticas de execução
    - Não realiza migração de schema
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .events import EventType, PipelineEvent


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Timestamps sem timezone são assumidos como UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


def _ms_between(start: datetime, end: datetime) -> int:
    s = _ensure_tzaware_utc(start)
    e = _ensure_tzaware_utc(end)
    return max(0, int((e - s).total_seconds() * 1000))


@dataclass
class RunManifest:
    """
    Registro forense de uma run.

    Campos principais:
        - run: metadados da execução
        - inputs: hashes semânticos das entradas (config)
        - versions: estado incremental por versão
        - events: Event Log ordenado
        - summary / errors: consolidados a partir do RunResult

    Limites explícitos:
        - Não executa pipeline
        - Não persiste automaticamente
    """

    run: Dict[str, Any]
    inputs: Dict[str, Any]
    versions: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)
    summary: Dict[str, Any] = field(default_factory=dict)
    errors: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run": dict(self.run),
            "inputs": dict(self.inputs),
            "versions": {k: dict(v) for k, v in self.versions.items()},
            "events": [dict(e) for e in self.events],
            "summary": dict(self.summary),
            "errors": [dict(e) for e in self.errors],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunManifest":
        """Reconstrução permissiva: campos ausentes viram estruturas vazias."""
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            versions={k: dict(v) for k, v in (data.get("versions", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
            summary=dict(data.get("summary", {}) or {}),
            errors=[dict(e) for e in (data.get("errors", []) or [])],
        )


def _get_manifest(manifest: Union[RunManifest, Dict[str, Any]]) -> Tuple[RunManifest, bool]:
    if isinstance(manifest, RunManifest):
        return manifest, False
    return RunManifest.from_dict(manifest), True


def _sync_back(manifest: Union[RunManifest, Dict[str, Any]], m: RunManifest, is_dict: bool) -> None:
    if is_dict:
        manifest.clear()
        manifest.update(m.to_dict())


def create_manifest(
    *,
    run_id: str,
    pipeline_id: str,
    started_at: datetime,
    package_version: str,
    config_hash: Optional[str] = None,
) -> RunManifest:
    """
    Cria o Manifest inicial de uma run.

    ⚠️ Não registra eventos: o Event Log inicia vazio.

    Args:
        run_id: Identificador único da run.
        pipeline_id: Id do pipeline executado.
        started_at: Timestamp de início.
        package_version: Versão do pacote ucd-pipelines.
        config_hash: Hash da configuração resolvida (`compute_config_hash`), se houver.
    """
    return RunManifest(
        run={
            "run_id": run_id,
            "pipeline_id": pipeline_id,
            "started_at": _iso(started_at),
            "package_version": package_version,
        },
        inputs={"config_hash": config_hash},
    )


def add_event(
    manifest: Union[RunManifest, Dict[str, Any]],
    *,
    event_type: str,
    ts: datetime,
    version: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """Adiciona um evento ao Event Log; a ordem de chamada é a ordem canônica."""
    m, is_dict = _get_manifest(manifest)

    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
    if version is not None:
        ev["version"] = version
    if payload is not None:
        ev["payload"] = payload
    m.events.append(ev)

    _sync_back(manifest, m, is_dict)


def version_started(
    manifest: Union[RunManifest, Dict[str, Any]],
    *,
    version: str,
    ts: datetime,
) -> None:
    m, is_dict = _get_manifest(manifest)

    m.versions.setdefault(version, {})
    m.versions[version].update({"version": version, "status": "running", "started_at": _iso(ts)})
    add_event(m, event_type="version_started", ts=ts, version=version)

    _sync_back(manifest, m, is_dict)


def version_finished(
    manifest: Union[RunManifest, Dict[str, Any]],
    *,
    version: str,
    ts: datetime,
    error_count: int = 0,
) -> None:
    """
    Registra a conclusão de uma versão.

    O status é `completed` sem erros e `failed` caso contrário; a duração
    é calculada a partir de `started_at` quando disponível.
    """
    m, is_dict = _get_manifest(manifest)

    v = m.versions.setdefault(version, {"version": version})
    started_iso = v.get("started_at")
    started_dt = datetime.fromisoformat(started_iso) if started_iso else ts
    status = "completed" if error_count == 0 else "failed"
    v.update(
        {
            "status": status,
            "finished_at": _iso(ts),
            "duration_ms": _ms_between(started_dt, ts),
            "error_count": error_count,
        }
    )
    add_event(
        m,
        event_type="version_finished",
        ts=ts,
        version=version,
        payload={"status": status, "duration_ms": v["duration_ms"]},
    )

    _sync_back(manifest, m, is_dict)


def record_result(manifest: Union[RunManifest, Dict[str, Any]], result: Any) -> None:
    """Consolida resumo e erros de um RunResult no Manifest."""
    m, is_dict = _get_manifest(manifest)

    m.summary = result.summary.to_dict()
    m.errors = [e.to_dict() for e in result.errors]
    m.run["status"] = result.status

    _sync_back(manifest, m, is_dict)


class ManifestRecorder:
    """
    Observador de eventos que alimenta um Manifest.

    Uso:

        recorder = ManifestRecorder(manifest)
        definition = PipelineDefinition(..., on_event=recorder)

    Eventos de versão atualizam `versions`; eventos de erro incrementam o
    contador da versão; os demais tipos em `record_types` vão para o Event Log.
    """

    DEFAULT_TYPES = frozenset(
        {
            EventType.PIPELINE_START,
            EventType.PIPELINE_END,
            EventType.FILE_FALLBACK,
            EventType.FILE_SKIPPED,
            EventType.ERROR,
        }
    )

    def __init__(self, manifest: RunManifest, *, record_types: Optional[frozenset] = None):
        self.manifest = manifest
        self.record_types = record_types if record_types is not None else self.DEFAULT_TYPES
        self._errors: Dict[str, int] = {}

    def __call__(self, event: PipelineEvent) -> None:
        now = datetime.now(timezone.utc)

        if event.type == EventType.VERSION_START:
            self._errors[event.version] = 0
            version_started(self.manifest, version=event.version, ts=now)
            return

        if event.type == EventType.VERSION_END:
            version_finished(
                self.manifest,
                version=event.version,
                ts=now,
                error_count=self._errors.get(event.version, 0),
            )
            return

        if event.type == EventType.ERROR:
            error = event.data.get("error")
            version = getattr(error, "version", None) or event.version
            if version is not None:
                self._errors[version] = self._errors.get(version, 0) + 1

        if event.type in self.record_types:
            payload = event.to_dict()
            payload.pop("timestamp", None)
            payload.pop("type", None)
            add_event(
                self.manifest,
                event_type=event.type.value,
                ts=now,
                version=event.version,
                payload=payload,
            )


def save_manifest(manifest: Union[RunManifest, Dict[str, Any]], path: Path) -> None:
    """
    Persiste o Manifest em JSON determinístico.

    Raises:
        OSError: Falha ao criar diretórios ou escrever o arquivo.
        TypeError: Conteúdo não serializável.
    """
    data = manifest.to_dict() if isinstance(manifest, RunManifest) else manifest
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True), encoding="utf-8")


def load_manifest(path: Path) -> RunManifest:
    data = json.loads(path.read_text(encoding="utf-8"))
    return RunManifest.from_dict(data)
