"""Integration tests for mirroring result files into the store."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from fakes import FakeLayer, FakeProxy
from sqlalchemy import event, func, select
from sqlalchemy.exc import SQLAlchemyError

from nraexport.config import SyncConfig
from nraexport.errors import ProxyFailureError
from nraexport.storage import Layer, LayerPart, SpectrumExport, SpectrumExportRepository, normalize_fs_path
from nraexport.sync import ExportSynchronizer, file_mtime_ms
from nraexport.sync import synchronizer as synchronizer_module


pytestmark = pytest.mark.integration


def _write(path: Path, mtime_s: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("<xnra/>", encoding="utf-8")
    os.utime(path, ns=(mtime_s * 1_000_000_000, mtime_s * 1_000_000_000))
    return path


@pytest.fixture
def results(tmp_path: Path) -> Path:
    root = tmp_path / "results"
    _write(root / "r-1_FeW.xnra", 1_700_000_000)
    _write(root / "nested" / "r-2_FeW.xnra", 1_700_000_100)
    (root / "notes.txt").write_text("ignored", encoding="utf-8")
    return root


def _synchronizer(proxy: FakeProxy, session_factory, **config) -> ExportSynchronizer:
    return ExportSynchronizer(proxy, session_factory, config=SyncConfig(**config), sleep=lambda _: None)


def _load(session_factory, path: Path) -> SpectrumExport | None:
    with session_factory() as session:
        return SpectrumExportRepository(session).load_spectra([path]).get(normalize_fs_path(path))


def test_first_pass_exports_every_layer_and_part(results: Path, proxy: FakeProxy, session_factory) -> None:
    sync = _synchronizer(proxy, session_factory)
    report = sync.run(results)

    assert report.scanned == 2
    assert report.changed
    assert len(report.exported) == 2
    assert not report.failed

    path = results / "r-1_FeW.xnra"
    spectrum = _load(session_factory, path)
    assert spectrum is not None
    assert spectrum.changed_at_ms == file_mtime_ms(path)
    assert [layer.index for layer in spectrum.layers] == [1, 2, 3]
    assert {part.element_name for part in spectrum.layer(1).parts} == {"W ", "Fe"}
    assert {part.element_name for part in spectrum.layer(3).parts} == {"Fe"}
    assert spectrum.layer(1).roughness_fwhm == pytest.approx(1.5)
    assert spectrum.layer(2).roughness_fwhm == 0.0
    assert spectrum.layer(2).concentration("W") == pytest.approx(0.2)
    assert (results / "dat" / "r-1_FeW.dat").exists()
    assert (results / "nested" / "dat" / "r-2_FeW.dat").exists()


def test_unchanged_files_cause_no_writes(results: Path, proxy: FakeProxy, session_factory) -> None:
    sync = _synchronizer(proxy, session_factory)
    sync.run(results)

    writes: list[str] = []

    def record(conn, cursor, statement, parameters, context, executemany) -> None:
        if statement.lstrip().upper().startswith(("INSERT", "UPDATE", "DELETE")):
            writes.append(statement)

    engine = session_factory.kw["bind"]
    event.listen(engine, "before_cursor_execute", record)
    try:
        opened_before = sum(1 for call in proxy.calls if call[0] == "open")
        assert sync.sync(results) is False
    finally:
        event.remove(engine, "before_cursor_execute", record)

    assert writes == []
    assert sum(1 for call in proxy.calls if call[0] == "open") == opened_before


def test_changed_file_is_reexported_and_pruned(results: Path, proxy: FakeProxy, session_factory) -> None:
    sync = _synchronizer(proxy, session_factory)
    sync.run(results)

    path = _write(results / "r-1_FeW.xnra", 1_700_000_500)
    proxy.set_layers(path, [FakeLayer(12.0, {"O": 0.4, "Fe": 0.6}), FakeLayer(50.0, {"Fe": 1.0})])
    report = sync.run(results)

    assert [p.path for p in report.pending] == [path]
    spectrum = _load(session_factory, path)
    assert [layer.index for layer in spectrum.layers] == [1, 2]
    assert {part.element_name for part in spectrum.layer(1).parts} == {"O ", "Fe"}
    assert spectrum.layer(1).thickness == pytest.approx(12.0)
    assert spectrum.changed_at_ms == file_mtime_ms(path)

    with session_factory() as session:
        assert session.scalar(select(func.count()).select_from(Layer)) == 5
        orphans = select(func.count()).select_from(LayerPart).where(~LayerPart.layer_id.in_(select(Layer.id)))
        assert session.scalar(orphans) == 0


def test_unopenable_file_is_skipped_and_retried(results: Path, proxy: FakeProxy, session_factory) -> None:
    broken = results / "nested" / "r-2_FeW.xnra"
    good = results / "r-1_FeW.xnra"
    proxy.unopenable.add(normalize_fs_path(broken))
    sync = _synchronizer(proxy, session_factory)

    report = sync.run(results)
    assert report.failed == [broken]
    assert report.exported == [good]
    assert _load(session_factory, broken) is None
    assert _load(session_factory, good) is not None

    proxy.unopenable.clear()
    report = sync.run(results)
    assert report.exported == [broken]
    assert _load(session_factory, broken) is not None


def test_session_failure_aborts_the_pass(
    results: Path, proxy: FakeProxy, session_factory, monkeypatch: pytest.MonkeyPatch
) -> None:
    def dead() -> int:
        raise ProxyFailureError("RPC server unavailable")

    monkeypatch.setattr(proxy, "number_of_layers", dead)
    with pytest.raises(ProxyFailureError):
        _synchronizer(proxy, session_factory).run(results)
    assert _load(session_factory, results / "nested" / "r-2_FeW.xnra") is None
    assert _load(session_factory, results / "r-1_FeW.xnra") is None


def test_stat_failure_does_not_block_siblings(
    results: Path, proxy: FakeProxy, session_factory, monkeypatch: pytest.MonkeyPatch
) -> None:
    vanished = results / "nested" / "r-2_FeW.xnra"

    def mtime(path: Path) -> int:
        if path == vanished:
            raise FileNotFoundError(path)
        return file_mtime_ms(path)

    monkeypatch.setattr(synchronizer_module, "file_mtime_ms", mtime)
    report = _synchronizer(proxy, session_factory).run(results)

    assert report.failed == [vanished]
    assert report.exported == [results / "r-1_FeW.xnra"]


def test_lookup_failure_does_not_block_siblings(
    results: Path, proxy: FakeProxy, session_factory, monkeypatch: pytest.MonkeyPatch
) -> None:
    unreadable = results / "nested" / "r-2_FeW.xnra"
    find_by_path = SpectrumExportRepository.find_by_path

    def lookup(self, path):
        if Path(path) == unreadable:
            raise SQLAlchemyError("database is locked")
        return find_by_path(self, path)

    monkeypatch.setattr(SpectrumExportRepository, "find_by_path", lookup)
    report = _synchronizer(proxy, session_factory).run(results)

    assert report.failed == [unreadable]
    assert report.exported == [results / "r-1_FeW.xnra"]


def test_export_oserror_does_not_block_siblings(results: Path, proxy: FakeProxy, session_factory) -> None:
    # A plain file where the dat directory should go.
    (results / "nested" / "dat").write_text("", encoding="utf-8")
    report = _synchronizer(proxy, session_factory).run(results)

    blocked = results / "nested" / "r-2_FeW.xnra"
    assert report.failed == [blocked]
    assert report.exported == [results / "r-1_FeW.xnra"]
    assert _load(session_factory, blocked) is None


def test_export_store_error_rolls_back_only_that_file(
    results: Path, proxy: FakeProxy, session_factory, monkeypatch: pytest.MonkeyPatch
) -> None:
    rejected = results / "nested" / "r-2_FeW.xnra"
    upsert_layer = SpectrumExportRepository.upsert_layer

    def upsert(self, spectrum, index, thickness, roughness_fwhm):
        if spectrum.fs_path == normalize_fs_path(rejected):
            raise SQLAlchemyError("constraint failed")
        return upsert_layer(self, spectrum, index, thickness, roughness_fwhm)

    monkeypatch.setattr(SpectrumExportRepository, "upsert_layer", upsert)
    report = _synchronizer(proxy, session_factory).run(results)

    assert report.failed == [rejected]
    assert report.exported == [results / "r-1_FeW.xnra"]
    assert _load(session_factory, rejected) is None


def test_maximum_depth_is_stored_when_enabled(results: Path, proxy: FakeProxy, session_factory) -> None:
    sync = _synchronizer(proxy, session_factory, compute_max_depth=True)
    sync.run(results)
    spectrum = _load(session_factory, results / "r-1_FeW.xnra")
    assert spectrum.max_depth == pytest.approx(25.0)


def test_non_recursive_scan_skips_subdirectories(results: Path, proxy: FakeProxy, session_factory) -> None:
    report = _synchronizer(proxy, session_factory).run(results, recursive=False)
    assert report.scanned == 1
