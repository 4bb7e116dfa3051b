"""Adapter tests for CLI entrypoint."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from fakes import FakeLayer, FakeProxy

from nraexport.app.cli import main
from nraexport.services import InstanceRegistry


pytestmark = pytest.mark.adapter


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    results = tmp_path / "results"
    results.mkdir()
    (results / "r-05_FeW_Si.xnra").write_text("<xnra/>", encoding="utf-8")
    config = {
        "watch": {"root": "results", "on_update": False},
        "database": {"url": "sqlite:///store.db"},
        "logging": {"level": "warning"},
        "reports": [
            {
                "type": "first_layer",
                "name": "snapshot",
                "output": "out",
                "files": ["results/r-05_FeW_Si.xnra"],
            }
        ],
    }
    path = tmp_path / "nraexport.yaml"
    path.write_text(yaml.safe_dump(config, sort_keys=False), encoding="utf-8")
    return path


@pytest.fixture
def instances(tungsten_stack: list[FakeLayer]) -> InstanceRegistry:
    return InstanceRegistry(factory=lambda name: FakeProxy(name, layers=tungsten_stack))


def test_cli_sync_command_smoke(
    tmp_path: Path, config_path: Path, instances: InstanceRegistry, capsys: pytest.CaptureFixture[str]
) -> None:
    rc = main(["sync", str(config_path)], instances=instances)
    captured = capsys.readouterr()

    assert rc == 0
    assert "Done. scanned=1, exported=1, failed=0" in captured.out
    assert (tmp_path / "store.db").exists()
    assert (tmp_path / "out" / "snapshot.csv").exists()
    assert (tmp_path / "results" / "dat" / "r-05_FeW_Si.dat").exists()


def test_cli_report_after_sync(
    tmp_path: Path, config_path: Path, instances: InstanceRegistry, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["sync", str(config_path), "--no-reports"], instances=instances) == 0
    assert not (tmp_path / "out" / "snapshot.csv").exists()

    rc = main(["report", str(config_path)], instances=instances)
    captured = capsys.readouterr()

    assert rc == 0
    assert "Output:" in captured.out
    assert (tmp_path / "out" / "snapshot.csv").exists()


def test_cli_depth_command(config_path: Path, instances: InstanceRegistry, capsys: pytest.CaptureFixture[str]) -> None:
    result = config_path.parent / "results" / "r-05_FeW_Si.xnra"
    rc = main(["depth", str(config_path), str(result), "--element", "W"], instances=instances)
    captured = capsys.readouterr()

    assert rc == 0
    assert "max_depth=25" in captured.out
    assert "W=4" in captured.out


def test_cli_invalid_config_exits_with_code_2(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("watch: {}\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["sync", str(path)])

    assert excinfo.value.code == 2
    assert "Error:" in capsys.readouterr().err


def test_cli_store_failure_exits_with_code_1(
    tmp_path: Path, instances: InstanceRegistry, capsys: pytest.CaptureFixture[str]
) -> None:
    (tmp_path / "results").mkdir()
    path = tmp_path / "unreachable.yaml"
    config = {"watch": {"root": "results"}, "database": {"url": "sqlite:///no/such/dir/store.db"}}
    path.write_text(yaml.safe_dump(config), encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["sync", str(path)], instances=instances)

    assert excinfo.value.code == 1
    assert "Error:" in capsys.readouterr().err
