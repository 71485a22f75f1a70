# tests/core/traceability/test_events.py
"""
Testes do EventEmitter.

Invariantes:
    - `events` reflete a ordem de emissão
    - span ids são únicos e gerados sequencialmente quando omitidos
    - observadores assíncronos são aguardados antes do retorno de `emit`
"""

import asyncio

import pytest

try:
    from ucd_pipelines.core.pipeline.types import FileIdentity
    from ucd_pipelines.core.traceability.events import EventEmitter, EventType
except Exception as e:  # noqa: BLE001
    EventEmitter = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing events module. Implement:\n"
            "- src/ucd_pipelines/core/traceability/events.py (EventEmitter, EventType)\n"
            f"Import error: {_IMPORT_ERR}"
        )


@pytest.mark.asyncio
async def test_emit_records_events_in_order_with_unique_spans():
    _require_imports()
    seen = []
    emitter = EventEmitter(seen.append)

    first = await emitter.emit(EventType.PIPELINE_START, versions=["16.0.0"])
    second = await emitter.emit(EventType.VERSION_START, version="16.0.0")
    third = await emitter.emit(EventType.VERSION_END, span_id=second.span_id, version="16.0.0")

    assert emitter.events == [first, second, third] == seen
    assert first.span_id != second.span_id
    assert third.span_id == second.span_id
    assert first.timestamp <= second.timestamp <= third.timestamp
    assert emitter.of_type(EventType.VERSION_START) == [second]


@pytest.mark.asyncio
async def test_async_observer_is_awaited():
    _require_imports()
    done = []

    async def observer(event):
        await asyncio.sleep(0)
        done.append(event.type)

    emitter = EventEmitter(observer)
    await emitter.emit("parse:start")

    assert done == [EventType.PARSE_START]


@pytest.mark.asyncio
async def test_observer_failure_propagates_to_emitter():
    _require_imports()

    def observer(event):
        raise RuntimeError("observer down")

    emitter = EventEmitter(observer)

    with pytest.raises(RuntimeError, match="observer down"):
        await emitter.emit(EventType.ERROR)
    # o evento já foi registrado antes do observador falhar
    assert len(emitter.events) == 1


@pytest.mark.asyncio
async def test_event_to_dict_flattens_coordinates_and_data():
    _require_imports()
    emitter = EventEmitter()
    file = FileIdentity.from_path("16.0.0", "ucd/LineBreak.txt")

    event = await emitter.emit(
        EventType.PARSE_END, version="16.0.0", file=file, route_id="line-break", row_count=3
    )
    d = event.to_dict()

    assert d["type"] == "parse:end"
    assert d["version"] == "16.0.0"
    assert d["route_id"] == "line-break"
    assert d["row_count"] == 3
    assert d["file"] == {
        "version": "16.0.0",
        "dir": "ucd",
        "path": "ucd/LineBreak.txt",
        "name": "LineBreak.txt",
        "ext": ".txt",
    }
    assert "artifact_id" not in d
