"""Integration tests for the export service wiring."""

from __future__ import annotations

from pathlib import Path

import pytest
from fakes import FakeLayer, FakeProxy

from nraexport.config import AppConfig, DepthProfileReportConfig, SyncConfig, WatchConfig
from nraexport.errors import ProxyFailureError
from nraexport.services import ExportService, InstanceRegistry
from nraexport.storage import normalize_fs_path
from nraexport.sync import FORCE_EVENT


pytestmark = pytest.mark.integration


@pytest.fixture
def service(tmp_path: Path, session_factory, tungsten_stack: list[FakeLayer]) -> ExportService:
    root = tmp_path / "results"
    root.mkdir()
    (root / "r-1_FeW.xnra").write_text("<xnra/>", encoding="utf-8")
    config = AppConfig(
        watch=WatchConfig(root=root, on_update=False),
        sync=SyncConfig(instance_name="Bench"),
        reports=[
            DepthProfileReportConfig(
                name="profile", output=tmp_path / "out", file=root / "r-1_FeW.xnra", element="W "
            )
        ],
    )
    instances = InstanceRegistry(factory=lambda name: FakeProxy(name, layers=tungsten_stack))
    return ExportService(config, instances=instances, session_factory=session_factory, sleep=lambda _: None)


def test_forced_startup_exports_and_renders(tmp_path: Path, service: ExportService) -> None:
    service.start()

    assert service.instances.names() == ["Bench"]
    assert service.debouncer.passes == 1
    assert (tmp_path / "out" / "profile.csv").exists()
    assert service.watcher is None


def test_unchanged_event_skips_reports(tmp_path: Path, service: ExportService) -> None:
    service.sync_once(render_reports=False)
    assert not (tmp_path / "out" / "profile.csv").exists()

    assert service.handle_event("change", tmp_path / "results" / "r-1_FeW.xnra") is True
    assert not (tmp_path / "out" / "profile.csv").exists()

    service.handle_event(FORCE_EVENT)
    assert (tmp_path / "out" / "profile.csv").exists()


def test_pass_errors_are_logged_not_raised(
    tmp_path: Path, service: ExportService, monkeypatch: pytest.MonkeyPatch
) -> None:
    proxy = service.instances.acquire("Bench")

    def dead() -> int:
        raise ProxyFailureError("RPC server unavailable")

    monkeypatch.setattr(proxy, "number_of_layers", dead)

    assert service.handle_event("add", tmp_path / "results" / "r-1_FeW.xnra") is False
    assert not service.debouncer.running


def test_unopenable_file_does_not_abandon_the_pass(tmp_path: Path, service: ExportService) -> None:
    proxy = service.instances.acquire("Bench")
    proxy.unopenable.add(normalize_fs_path(tmp_path / "results" / "r-1_FeW.xnra"))

    assert service.handle_event("add", tmp_path / "results" / "r-1_FeW.xnra") is True
    assert not service.debouncer.running


def test_one_poll_runs_one_pass(tmp_path: Path, service: ExportService) -> None:
    events = [("add", tmp_path / "results" / f"r-{i}_FeW.xnra") for i in range(2, 22)]
    for _, path in events:
        path.write_text("<xnra/>", encoding="utf-8")

    assert service.handle_events(events) is True
    assert service.debouncer.passes == 1
    assert service.handle_events([]) is False
    assert service.debouncer.passes == 1


def test_depth_summary(tmp_path: Path, service: ExportService) -> None:
    summary = service.depth_summary(tmp_path / "results" / "r-1_FeW.xnra", ["W", "Fe"])
    assert summary.max_depth == pytest.approx(25.0)
    assert summary.integrals["W"] == pytest.approx(4.0)


def test_stop_closes_instances(service: ExportService) -> None:
    proxy = service.synchronizer().proxy
    service.stop()
    assert proxy.closed
    assert service.instances.names() == []
