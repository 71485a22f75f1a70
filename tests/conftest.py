# tests/conftest.py
"""
Fixtures compartilhados para testes do UCD Pipelines.

Este módulo define fixtures reutilizáveis que fornecem:
- configurações mínimas e determinísticas (YAML como string)
- backends em memória com arquivos no formato do UCD
- fábricas de rotas com parser/resolver simples e rastreáveis

Decisões arquiteturais:
    - Fixtures são mantidas simples e explícitas
    - Imports do pacote são feitos de forma lazy para falhas legíveis
    - Rotas de teste registram o que observaram (artefatos, instantes)

Invariantes:
    - Nenhuma fixture executa pipeline real
    - Nenhuma fixture realiza I/O de disco (exceto via `tmp_path` nos testes)

Limites explícitos:
    - Não substituir testes de integração
    - Não conter gramáticas reais de arquivos do UCD
"""

import pytest


# =====================================================
# Config fixtures
# =====================================================

@pytest.fixture
def project_like_config_defaults_yaml() -> str:
    """
    YAML de defaults semelhante ao `config.defaults.yaml` de um projeto.

    Invariantes:
        - YAML sintaticamente válido
        - Contém a seção `engine` completa e a lista de versões
    """
    return """\
versions:
  - "15.1.0"
  - "16.0.0"
engine:
  concurrency: 4
  strict: false
  cache: true
"""


@pytest.fixture
def project_like_config_local_yaml() -> str:
    """YAML de overrides locais (apenas o que muda por máquina)."""
    return """\
engine:
  concurrency: 1
  strict: true
"""


# =====================================================
# Corpus fixtures
# =====================================================

@pytest.fixture
def ucd_files() -> dict:
    """
    Arquivos mínimos de duas versões do corpus.

    Estrutura: `{versão: {path: conteúdo}}`, consumida pelo `MemoryBackend`.
    """
    line_break = (
        "# LineBreak-16.0.0.txt\n"
        "\n"
        "0041..005A;AL # Lu\n"
        "0030..0039;NU # Nd\n"
        "0020;SP # Zs\n"
    )
    props = (
        "# PropList\n"
        "0009..000D    ; White_Space # Cc\n"
        "0020          ; White_Space # Zs\n"
        "002D          ; Dash # Pd\n"
    )
    return {
        "16.0.0": {
            "ucd/LineBreak.txt": line_break,
            "ucd/PropList.txt": props,
            "ReadMe.txt": "readme\n",
        },
        "15.1.0": {
            "ucd/LineBreak.txt": line_break,
        },
    }


@pytest.fixture
def memory_backend(ucd_files):
    """Backend em memória populado com `ucd_files`."""
    from ucd_pipelines.backends.memory import MemoryBackend

    return MemoryBackend(ucd_files)


@pytest.fixture
def memory_source(memory_backend):
    """Fonte única `mem` sobre o backend em memória."""
    from ucd_pipelines.core.pipeline.source import SourceDefinition

    return SourceDefinition(id="mem", backend=memory_backend)


@pytest.fixture
def make_route():
    """
    Fábrica de rotas de teste.

    A rota retornada usa `parse_data_lines` como parser e um resolver que
    devolve um dict por registro `{"route", "path", "value", "property"}`.
    Parâmetros extras são repassados a `RouteDefinition`.

    Decisões arquiteturais:
        - O resolver padrão consome as linhas como iterador assíncrono
        - `on_resolve(ctx)` permite ao teste observar o ResolveContext

    Returns:
        Callable[..., RouteDefinition]
    """
    from ucd_pipelines.core.pipeline.filters import always
    from ucd_pipelines.core.pipeline.parsing import parse_data_lines
    from ucd_pipelines.core.pipeline.route import RouteDefinition

    def _factory(route_id, *, filter=None, on_resolve=None, resolver=None, parser=None, **kwargs):
        async def _default_resolver(ctx, rows):
            if on_resolve is not None:
                on_resolve(ctx)
            out = []
            async for row in rows:
                out.append(
                    {
                        "route": route_id,
                        "path": ctx.file.path,
                        "value": row.value,
                        "property": row.property,
                    }
                )
            return out

        return RouteDefinition(
            id=route_id,
            filter=filter or always,
            parser=parser or parse_data_lines,
            resolver=resolver or _default_resolver,
            **kwargs,
        )

    return _factory


@pytest.fixture
def make_definition(memory_source):
    """Fábrica de `PipelineDefinition` sobre a fonte em memória."""
    from ucd_pipelines.core.engine.engine import PipelineDefinition

    def _factory(routes, **kwargs):
        kwargs.setdefault("versions", ["16.0.0"])
        kwargs.setdefault("inputs", [memory_source])
        return PipelineDefinition(id="test-pipeline", routes=list(routes), **kwargs)

    return _factory
