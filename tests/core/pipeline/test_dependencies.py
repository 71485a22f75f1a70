# tests/core/pipeline/test_dependencies.py
"""
Testes do parser de tokens de dependência.

Os testes asseguram que:
- `route:<id>` e `artifact:<id>:<nome>` são reconhecidos
- `parse(format(ref)) == ref` para os dois tipos
- tokens com segmento vazio falham com `InvalidDependencyFormat`

Limites explícitos:
    - Não valida se a rota referenciada existe (responsabilidade do planner)
"""

import pytest

try:
    from ucd_pipelines.core.exceptions import InvalidDependencyFormat
    from ucd_pipelines.core.pipeline.dependencies import (
        ArtifactDependency,
        RouteDependency,
        artifact_dependency,
        format_dependency,
        is_artifact_dependency,
        is_route_dependency,
        parse_dependency,
        route_dependency,
    )
except Exception as e:  # noqa: BLE001
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing dependency parser. Implement:\n"
            "- src/ucd_pipelines/core/pipeline/dependencies.py (parse_dependency, format_dependency)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_parse_route_token():
    _require_imports()
    assert parse_dependency("route:line-break") == RouteDependency(route_id="line-break")


def test_parse_artifact_token():
    _require_imports()
    ref = parse_dependency("artifact:names:table")
    assert ref == ArtifactDependency(route_id="names", artifact_name="table")
    assert ref.kind == "artifact"
    assert ref.key == "names:table"


@pytest.mark.parametrize(
    "ref",
    [
        RouteDependency(route_id="props"),
        ArtifactDependency(route_id="props", artifact_name="ranges"),
    ],
)
def test_round_trip(ref):
    """
    Verifica `parse(format(ref)) == ref` para referências de rota e artefato.
    """
    _require_imports()
    assert parse_dependency(format_dependency(ref)) == ref


@pytest.mark.parametrize(
    "token",
    [
        "route:",
        "artifact::x",
        "artifact:x:",
        "artifact:x",
        "route:a:b",
        "rota:a",
        "",
        "route",
        42,
        "route:x\n",
        "route:line break",
        "artifact:x:table\n",
        " route:x",
    ],
)
def test_invalid_tokens_raise(token):
    """
    Verifica que tokens malformados nunca são aceitos silenciosamente.

    Invariantes:
        - A exceção carrega o token em `details`
        - A mensagem indica os dois formatos aceitos
    """
    _require_imports()
    with pytest.raises(InvalidDependencyFormat) as excinfo:
        parse_dependency(token)
    assert excinfo.value.details["token"] == token
    assert 'Expected "route:<id>"' in excinfo.value.message


def test_helpers_build_and_classify_tokens():
    _require_imports()
    assert route_dependency("a") == "route:a"
    assert artifact_dependency("a", "b") == "artifact:a:b"
    assert is_route_dependency("route:a")
    assert not is_route_dependency("artifact:a:b")
    assert is_artifact_dependency("artifact:a:b")
    assert not is_artifact_dependency("artifact::b")
    assert not is_route_dependency("route:a\n")
