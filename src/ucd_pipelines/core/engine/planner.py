# src/ucd_pipelines/core/engine/planner.py
"""
Planejador de execução do pipeline (DAG de rotas).

Este módulo valida a estrutura declarada das rotas e produz:
    - o grafo de dependências (nós, dependências, dependentes, artefatos emitidos)
    - uma ordem topológica total
    - as camadas de execução paralela consumidas pelo engine

O planner opera exclusivamente em nível estrutural, analisando:
    - identificadores de rotas
    - tokens de dependência (`route:` / `artifact:`)
    - artefatos declarados em `emits`
    - formação de ciclos

Decisões arquiteturais:
    - Ids duplicados interrompem a validação imediatamente
    - Demais erros (referências, tokens inválidos, ciclo) são coletados juntos
    - Ciclos são detectados por DFS com pilha de recursão explícita
    - A ordem topológica é o pós-ordem da DFS, estável em relação à ordem declarada
    - Camadas são calculadas a partir dos nós já agendados, não da ordem declarada

Invariantes:
    - Nenhuma rota aparece antes de suas dependências na ordem total
    - Cada rota aparece em exatamente uma camada
    - A camada k contém apenas rotas cujas dependências estão em camadas < k
    - Um grafo é retornado ou uma lista de erros, nunca os dois

Limites explícitos:
    - Não executa rotas
    - Não interage com VersionContext
    - Não registra eventos de rastreabilidade
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ucd_pipelines.core.exceptions import InvalidDependencyFormat, PipelineDefinitionError
from ucd_pipelines.core.pipeline.dependencies import ArtifactDependency, parse_dependency

DUPLICATE_ROUTE = "duplicate-route"
MISSING_ROUTE = "missing-route"
MISSING_ARTIFACT = "missing-artifact"
INVALID_DEPENDENCY = "invalid-dependency"
CYCLE = "cycle"


@dataclass
class DAGNode:
    """
    Nó do grafo: uma rota declarada.

    As coleções preservam a ordem de inserção e não contêm repetições.
    """

    id: str
    dependencies: List[str] = field(default_factory=list)
    dependents: List[str] = field(default_factory=list)
    emitted_artifacts: List[str] = field(default_factory=list)

    def add_dependency(self, route_id: str) -> None:
        if route_id not in self.dependencies:
            self.dependencies.append(route_id)

    def add_dependent(self, route_id: str) -> None:
        if route_id not in self.dependents:
            self.dependents.append(route_id)


@dataclass(frozen=True)
class DependencyGraph:
    nodes: Dict[str, DAGNode]
    execution_order: List[str]

    def node(self, route_id: str) -> DAGNode:
        return self.nodes[route_id]


@dataclass(frozen=True)
class DAGValidationError:
    type: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "message": self.message, "details": dict(self.details)}


@dataclass(frozen=True)
class DAGValidationResult:
    valid: bool
    errors: List[DAGValidationError] = field(default_factory=list)
    dag: Optional[DependencyGraph] = None


def _emitted_names(route: Any) -> List[str]:
    names = getattr(route, "emitted_artifact_names", None)
    if names is not None:
        return list(names)
    emits = getattr(route, "emits", None) or {}
    return [getattr(e, "name", e) for e in emits]


def build_dag(routes: Sequence[Any]) -> DAGValidationResult:
    """
    Valida as rotas e constrói o grafo de dependências.

    Args:
        routes: Rotas declaradas (qualquer objeto com `id`, `depends` e `emits`).

    Returns:
        DAGValidationResult: `valid=True` com `dag`, ou `valid=False` com `errors`.
    """
    errors: List[DAGValidationError] = []

    seen: Dict[str, int] = {}
    for index, route in enumerate(routes):
        if route.id in seen:
            errors.append(
                DAGValidationError(
                    type=DUPLICATE_ROUTE,
                    message=f'Duplicate route ID "{route.id}" found at index {seen[route.id]} and {index}',
                    details={"route_id": route.id, "indices": [seen[route.id], index]},
                )
            )
        else:
            seen[route.id] = index

    if errors:
        return DAGValidationResult(valid=False, errors=errors)

    nodes: Dict[str, DAGNode] = {}
    for route in routes:
        nodes[route.id] = DAGNode(
            id=route.id,
            emitted_artifacts=[f"{route.id}:{name}" for name in _emitted_names(route)],
        )

    for route in routes:
        node = nodes[route.id]
        for token in getattr(route, "depends", None) or ():
            try:
                ref = parse_dependency(token)
            except InvalidDependencyFormat as exc:
                errors.append(
                    DAGValidationError(
                        type=INVALID_DEPENDENCY,
                        message=exc.message,
                        details={"route_id": route.id, "dependency_id": token},
                    )
                )
                continue

            if ref.route_id not in nodes:
                target = "artifact from non-existent route" if isinstance(ref, ArtifactDependency) else "non-existent route"
                errors.append(
                    DAGValidationError(
                        type=MISSING_ROUTE,
                        message=f'Route "{route.id}" depends on {target} "{ref.route_id}"',
                        details={"route_id": route.id, "dependency_id": ref.route_id},
                    )
                )
                continue

            if isinstance(ref, ArtifactDependency) and ref.key not in nodes[ref.route_id].emitted_artifacts:
                errors.append(
                    DAGValidationError(
                        type=MISSING_ARTIFACT,
                        message=(
                            f'Route "{route.id}" depends on non-existent artifact '
                            f'"{ref.artifact_name}" from route "{ref.route_id}"'
                        ),
                        details={"route_id": route.id, "dependency_id": ref.key},
                    )
                )
                continue

            node.add_dependency(ref.route_id)
            nodes[ref.route_id].add_dependent(route.id)

    cycle = _detect_cycle(nodes)
    if cycle is not None:
        errors.append(
            DAGValidationError(
                type=CYCLE,
                message=f"Circular dependency detected: {' -> '.join(cycle)}",
                details={"cycle": cycle},
            )
        )

    if errors:
        return DAGValidationResult(valid=False, errors=errors)

    return DAGValidationResult(
        valid=True,
        dag=DependencyGraph(nodes=nodes, execution_order=_topological_order(nodes)),
    )


def _detect_cycle(nodes: Dict[str, DAGNode]) -> Optional[List[str]]:
    visited: set = set()
    on_stack: set = set()
    path: List[str] = []

    def dfs(node_id: str) -> Optional[List[str]]:
        visited.add(node_id)
        on_stack.add(node_id)
        path.append(node_id)

        for dep_id in nodes[node_id].dependencies:
            if dep_id not in visited:
                found = dfs(dep_id)
                if found is not None:
                    return found
            elif dep_id in on_stack:
                return path[path.index(dep_id):] + [dep_id]

        path.pop()
        on_stack.discard(node_id)
        return None

    for node_id in nodes:
        if node_id not in visited:
            found = dfs(node_id)
            if found is not None:
                return found
    return None


def _topological_order(nodes: Dict[str, DAGNode]) -> List[str]:
    order: List[str] = []
    visited: set = set()

    def visit(node_id: str) -> None:
        if node_id in visited:
            return
        visited.add(node_id)
        for dep_id in nodes[node_id].dependencies:
            visit(dep_id)
        order.append(node_id)

    for node_id in nodes:
        visit(node_id)
    return order


def get_execution_layers(dag: DependencyGraph) -> List[List[str]]:
    """
    Agrupa as rotas em camadas de execução paralela.

    Raises:
        RuntimeError: Se nenhuma rota restante puder ser agendada (grafo
            cíclico chegou ao engine, violação de invariante).
    """
    layers: List[List[str]] = []
    scheduled: set = set()
    remaining = [node_id for node_id in dag.nodes]

    while remaining:
        layer = [
            node_id
            for node_id in remaining
            if all(dep in scheduled for dep in dag.nodes[node_id].dependencies)
        ]
        if not layer:
            raise RuntimeError(f"Unschedulable routes (cycle reached the engine): {remaining}")
        scheduled.update(layer)
        remaining = [node_id for node_id in remaining if node_id not in scheduled]
        layers.append(layer)

    return layers


def plan_execution(routes: Sequence[Any]) -> DependencyGraph:
    """
    Valida as rotas e retorna o grafo, ou falha a construção do pipeline.

    Raises:
        PipelineDefinitionError: Com todos os erros de validação coletados.
    """
    result = build_dag(routes)
    if not result.valid:
        raise PipelineDefinitionError(
            message="; ".join(e.message for e in result.errors),
            details={"errors": [e.to_dict() for e in result.errors]},
            hint="Revise ids, tokens de dependência e artefatos declarados das rotas.",
            errors=list(result.errors),
        )
    return result.dag
