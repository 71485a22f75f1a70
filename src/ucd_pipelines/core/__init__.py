# src/ucd_pipelines/core/__init__.py
"""
Núcleo do UCD Pipelines.

Subpacotes:
    - config       → carregamento, merge e hashing de configuração
    - pipeline     → declarações de rotas, fontes, filtros e contextos
    - engine       → planejamento (DAG) e execução do pipeline
    - cache        → stores de cache de saídas de rotas
    - traceability → eventos, grafo de proveniência e Manifest
"""
