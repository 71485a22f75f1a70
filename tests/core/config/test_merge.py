# tests/core/config/test_merge.py
"""
Testes da política de deep-merge de configuração.

Os testes asseguram que:
- valores escalares são sobrescritos corretamente
- dicionários são mesclados de forma recursiva
- listas são sobrescritas integralmente
- conflitos de tipo são detectados e rejeitados explicitamente
- objetos de entrada não são mutados durante o merge

Invariantes:
    - Chaves não sobrescritas são preservadas
    - Nenhum merge parcial é produzido em caso de erro

Limites explícitos:
    - Não valida carregamento de arquivos YAML
    - Não valida hashing de configuração
"""

import pytest

try:
    from ucd_pipelines.core.config.merge import deep_merge
    from ucd_pipelines.core.config.errors import ConfigTypeConflictError
except Exception as e:  # noqa: BLE001
    deep_merge = None
    ConfigTypeConflictError = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que os módulos de merge de config estejam disponíveis para os testes.
    """
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing config merge modules. Implement:\n"
            "- src/ucd_pipelines/core/config/merge.py (deep_merge)\n"
            "- src/ucd_pipelines/core/config/errors.py (ConfigTypeConflictError)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_merge_simple_override():
    """
    Verifica o override de valores escalares sem mutar as entradas.

    Invariantes:
        - O valor sobrescrito reflete exatamente o override
        - `base` e `override` não sofrem mutação
    """
    _require_imports()
    base = {"a": 1, "b": 2}
    override = {"b": 99}
    out = deep_merge(base, override)
    assert out == {"a": 1, "b": 99}
    assert base == {"a": 1, "b": 2}
    assert override == {"b": 99}


def test_merge_nested_dict():
    _require_imports()
    base = {"engine": {"concurrency": 4, "strict": False}}
    override = {"engine": {"strict": True}}
    out = deep_merge(base, override)
    assert out == {"engine": {"concurrency": 4, "strict": True}}


def test_merge_list_override_total():
    """A lista local de versões substitui integralmente a dos defaults."""
    _require_imports()
    base = {"versions": ["15.0.0", "15.1.0", "16.0.0"]}
    override = {"versions": ["16.0.0"]}
    assert deep_merge(base, override) == {"versions": ["16.0.0"]}


def test_merge_none_base_accepts_override():
    _require_imports()
    assert deep_merge({"cache_dir": None}, {"cache_dir": ".cache"}) == {"cache_dir": ".cache"}


def test_merge_type_conflict_raises():
    """
    Verifica que conflitos de tipo durante o deep-merge são rejeitados.

    Decisões arquiteturais:
        - Um dicionário não pode ser sobrescrito por um escalar
        - `bool` e `int` são tipos distintos para o merge
    """
    _require_imports()
    with pytest.raises(ConfigTypeConflictError):
        deep_merge({"engine": {"strict": True}}, {"engine": "DEBUG"})
    with pytest.raises(ConfigTypeConflictError):
        deep_merge({"engine": {"concurrency": 4}}, {"engine": {"concurrency": True}})
