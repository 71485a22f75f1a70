# tests/test_smoke.py
"""
Testes de sanidade estrutural (smoke tests) do UCD Pipelines.

Objetivo:
- garantir que o pacote importa sem efeitos colaterais
- garantir que a superfície pública de alto nível está exposta

Limites explícitos:
    - Não executa pipelines
    - Não testa lógica de negócio (ver tests/core/)
"""


def test_smoke():
    """
    Smoke test mínimo do pacote.

    Invariantes:
        - `ucd_pipelines` importa e expõe `__version__`
        - Os nomes de `__all__` existem no módulo
    """
    import ucd_pipelines

    assert ucd_pipelines.__version__ == "0.1.0"
    for name in ucd_pipelines.__all__:
        assert hasattr(ucd_pipelines, name), name
