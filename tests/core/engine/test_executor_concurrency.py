# tests/core/engine/test_executor_concurrency.py
"""
Testes do limite de concorrência do engine.

A unidade de concorrência é o par (rota, arquivo). Com `concurrency=1`
nenhuma tarefa começa antes da anterior terminar, o que é observável
pelos timestamps de `parse:start` / `resolve:end`.
"""

import asyncio

import pytest

try:
    from ucd_pipelines.core.engine.engine import Pipeline
    from ucd_pipelines.core.traceability.events import EventType
except Exception as e:  # noqa: BLE001
    Pipeline = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing engine. Implement:\n"
            "- src/ucd_pipelines/core/engine/engine.py (Pipeline)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def _sleepy_resolver(tracker):
    async def resolver(ctx, rows):
        tracker["running"] += 1
        tracker["peak"] = max(tracker["peak"], tracker["running"])
        out = [row.value async for row in rows]
        await asyncio.sleep(0.01)
        tracker["running"] -= 1
        return out

    return resolver


def _task_intervals(events):
    starts, ends = {}, {}
    for event in events:
        key = (event.route_id, event.file.path if event.file is not None else None)
        if event.type == EventType.PARSE_START:
            starts[key] = event.timestamp
        elif event.type == EventType.RESOLVE_END:
            ends[key] = event.timestamp
    return sorted((starts[k], ends[k]) for k in starts)


@pytest.mark.asyncio
async def test_concurrency_one_never_overlaps(make_definition, make_route):
    """
    Verifica que, com `concurrency=1`, tarefas nunca ficam em andamento juntas.

    Invariantes:
        - Cada intervalo [parse:start, resolve:end] termina antes do próximo começar
        - O pico de resolvers simultâneos é 1
    """
    _require_imports()
    tracker = {"running": 0, "peak": 0}
    routes = [
        make_route("a", resolver=_sleepy_resolver(tracker)),
        make_route("b", resolver=_sleepy_resolver(tracker)),
    ]

    result = await Pipeline(make_definition(routes, concurrency=1)).run(cache=False)

    intervals = _task_intervals(result.events)
    assert len(intervals) == 6
    for (_, previous_end), (next_start, _) in zip(intervals, intervals[1:]):
        assert previous_end <= next_start
    assert tracker["peak"] == 1


@pytest.mark.asyncio
async def test_tasks_run_concurrently_up_to_limit(make_definition, make_route):
    _require_imports()
    tracker = {"running": 0, "peak": 0}
    routes = [
        make_route("a", resolver=_sleepy_resolver(tracker)),
        make_route("b", resolver=_sleepy_resolver(tracker)),
    ]

    result = await Pipeline(make_definition(routes, concurrency=3)).run(cache=False)

    assert tracker["peak"] == 3
    assert result.summary.matched_files == 6
    assert result.errors == []


@pytest.mark.asyncio
async def test_dependent_layer_starts_after_previous_drains(make_definition, make_route):
    """Nenhuma tarefa de uma camada posterior começa antes da anterior terminar."""
    _require_imports()
    tracker = {"running": 0, "peak": 0}
    routes = [
        make_route("first", resolver=_sleepy_resolver(tracker)),
        make_route("second", depends=["route:first"], resolver=_sleepy_resolver(tracker)),
    ]

    result = await Pipeline(make_definition(routes, concurrency=4)).run(cache=False)

    first_end = max(
        e.timestamp for e in result.events if e.type == EventType.RESOLVE_END and e.route_id == "first"
    )
    second_start = min(
        e.timestamp for e in result.events if e.type == EventType.PARSE_START and e.route_id == "second"
    )
    assert first_end <= second_start
