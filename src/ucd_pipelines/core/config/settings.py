# src/ucd_pipelines/core/config/settings.py
"""
Projeção tipada da configuração de execução.

`EngineSettings` lê a seção `engine` e a lista opcional `versions` de uma
configuração já resolvida por `load_config`, validando tipos e limites.
A definição de rotas continua sendo código; a configuração apenas ajusta
políticas de execução de uma definição existente.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from .errors import InvalidEngineSettingsError

DEFAULT_CONCURRENCY = 4


def _require_bool(section: Dict[str, Any], key: str, default: bool) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise InvalidEngineSettingsError(
            f"engine.{key} deve ser bool, recebido: {type(value).__name__}"
        )
    return value


@dataclass(frozen=True)
class EngineSettings:
    """Políticas de execução resolvidas a partir da configuração."""

    concurrency: int = DEFAULT_CONCURRENCY
    strict: bool = False
    cache: bool = True
    versions: Optional[List[str]] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "EngineSettings":
        section = (config or {}).get("engine", {}) or {}
        if not isinstance(section, dict):
            raise InvalidEngineSettingsError("A seção `engine` deve ser um mapa")

        concurrency = section.get("concurrency", DEFAULT_CONCURRENCY)
        if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
            raise InvalidEngineSettingsError(
                f"engine.concurrency deve ser inteiro >= 1, recebido: {concurrency!r}"
            )

        versions = (config or {}).get("versions")
        if versions is not None:
            if not isinstance(versions, list) or not all(isinstance(v, str) and v for v in versions):
                raise InvalidEngineSettingsError("`versions` deve ser uma lista de strings não vazias")
            versions = list(versions)

        return cls(
            concurrency=concurrency,
            strict=_require_bool(section, "strict", False),
            cache=_require_bool(section, "cache", True),
            versions=versions,
        )

    def apply(self, definition: Any) -> Any:
        """Retorna uma nova definição de pipeline com as políticas aplicadas.

        `cache` é uma opção de run e não altera a definição; use `run_options`.
        """
        changes: Dict[str, Any] = {"concurrency": self.concurrency, "strict": self.strict}
        if self.versions is not None:
            changes["versions"] = list(self.versions)
        return replace(definition, **changes)

    def run_options(self) -> Dict[str, Any]:
        return {"cache": self.cache}
