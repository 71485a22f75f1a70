# tests/core/backends/test_local_backend.py
"""
Testes do backend sobre espelho local em disco.

Layout: `<root>/<versão>/<path>`.

Invariantes:
    - Arquivos ocultos são ignorados
    - Arquivos na raiz da versão ficam na categoria `ucd`
    - Diretório de versão ausente gera SourceNotFoundError
"""

from pathlib import Path

import pytest

try:
    from ucd_pipelines.backends.local import LocalBackend
    from ucd_pipelines.core.exceptions import SourceNotFoundError
    from ucd_pipelines.core.pipeline.types import FileIdentity
except Exception as e:  # noqa: BLE001
    LocalBackend = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing local backend. Implement:\n"
            "- src/ucd_pipelines/backends/local.py (LocalBackend)\n"
            f"Import error: {_IMPORT_ERR}"
        )


@pytest.fixture
def mirror(tmp_path: Path) -> Path:
    version = tmp_path / "16.0.0"
    (version / "ucd").mkdir(parents=True)
    (version / "emoji").mkdir()
    (version / "ucd" / "LineBreak.txt").write_text("0041;AL\n0030;NU\n", encoding="utf-8")
    (version / "emoji" / "emoji-data.txt").write_text("231A..231B;Emoji\n", encoding="utf-8")
    (version / "ReadMe.txt").write_text("readme\n", encoding="utf-8")
    (version / ".DS_Store").write_text("junk", encoding="utf-8")
    (version / ".git").mkdir()
    (version / ".git" / "HEAD").write_text("ref", encoding="utf-8")
    return tmp_path


@pytest.mark.asyncio
async def test_list_files_skips_hidden_and_derives_dir(mirror: Path):
    _require_imports()
    files = await LocalBackend(mirror).list_files("16.0.0")

    assert [(f.dir, f.path) for f in files] == [
        ("ucd", "ReadMe.txt"),
        ("emoji", "emoji/emoji-data.txt"),
        ("ucd", "ucd/LineBreak.txt"),
    ]


@pytest.mark.asyncio
async def test_missing_version_dir_raises(mirror: Path):
    _require_imports()
    with pytest.raises(SourceNotFoundError):
        await LocalBackend(mirror).list_files("1.0.0")


@pytest.mark.asyncio
async def test_read_file_and_stream(mirror: Path):
    _require_imports()
    backend = LocalBackend(str(mirror))
    file = FileIdentity.from_path("16.0.0", "ucd/LineBreak.txt")

    assert await backend.read_file(file) == "0041;AL\n0030;NU\n"

    chunks = [c async for c in backend.read_file_stream(file, chunk_size=4)]
    assert b"".join(chunks) == b"0041;AL\n0030;NU\n"
    assert chunks[0] == b"0041"

    ranged = [c async for c in backend.read_file_stream(file, chunk_size=4, start=5, end=10)]
    assert ranged == [b"AL\n0", b"0"]


@pytest.mark.asyncio
async def test_metadata_and_missing_file(mirror: Path):
    _require_imports()
    backend = LocalBackend(mirror)
    file = FileIdentity.from_path("16.0.0", "ReadMe.txt")

    meta = await backend.get_metadata(file)

    assert meta["size"] == len(b"readme\n")
    assert len(meta["hash"]) == 64
    assert meta["last_modified"].endswith("+00:00")

    with pytest.raises(SourceNotFoundError):
        await backend.read_file(FileIdentity.from_path("16.0.0", "ucd/Missing.txt"))
