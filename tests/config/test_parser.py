"""Unit tests for YAML config parsing."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from nraexport.config import (
    DepthProfileReportConfig,
    FirstLayerReportConfig,
    ThicknessUntilFractionReportConfig,
    load_config,
    parse_config,
)
from nraexport.errors import ConfigError


pytestmark = pytest.mark.unit


def _payload() -> dict:
    return {
        "watch": {"root": "results", "extensions": ["XNRA"]},
        "database": {"url": "sqlite:///store.db"},
        "depth": {"stopping_policy": "Initial"},
        "logging": {"level": "debug", "file": "logs/nraexport.log"},
        "reports": [
            {"type": "first_layer", "name": "snapshot", "output": "out", "files": ["results/r-1_FeW.xnra"]},
            {"type": "depth_profile", "name": "profile", "output": "out", "file": "results/a.xnra", "element": "W"},
            {
                "type": "thickness_until_fraction",
                "name": "half",
                "output": "out",
                "files": ["results/a.xnra", "results/b.xnra"],
                "labels": ["A", "B"],
                "element": "W",
                "threshold_fraction": 0.5,
            },
        ],
    }


def test_parse_config_resolves_paths_and_defaults(tmp_path: Path) -> None:
    cfg = parse_config(_payload(), base_dir=tmp_path)

    assert cfg.watch.root == (tmp_path / "results").resolve()
    assert cfg.watch.extensions == [".xnra"]
    assert cfg.watch.recursive is True
    assert cfg.database.url == "sqlite:///" + str((tmp_path / "store.db").resolve())
    assert cfg.depth.stopping_policy == "initial"
    assert cfg.logging.level == "DEBUG"
    assert cfg.logging.file == (tmp_path / "logs" / "nraexport.log").resolve()
    assert cfg.sync.instance_name == "Main"

    first, profile, half = cfg.reports
    assert isinstance(first, FirstLayerReportConfig)
    assert first.elements == ["Fe", "W ", "O "]
    assert isinstance(profile, DepthProfileReportConfig)
    assert profile.element == "W "
    assert profile.ignore_last is True
    assert profile.insert_zero_layer is False
    assert isinstance(half, ThicknessUntilFractionReportConfig)
    assert half.labels == ["A", "B"]


def test_memory_database_url_is_kept(tmp_path: Path) -> None:
    payload = _payload()
    payload["database"] = {"url": "sqlite://"}
    assert parse_config(payload, base_dir=tmp_path).database.url == "sqlite://"


@pytest.mark.parametrize(
    ("mutate", "message"),
    [
        (lambda p: p.pop("watch"), "Missing required key 'watch'"),
        (lambda p: p["depth"].update(stopping_policy="mean"), "depth.stopping_policy"),
        (lambda p: p["reports"][0].update(type="histogram"), "not supported"),
        (lambda p: p["reports"][2].update(labels=["A"]), "same length"),
        (lambda p: p["reports"][2].update(threshold_fraction=2.0), "within"),
        (lambda p: p["reports"][1].update(element="Xyz"), "1 or 2 letters"),
        (lambda p: p["reports"][1].update(name="snapshot"), "another report"),
    ],
)
def test_invalid_config_raises_config_error(tmp_path: Path, mutate, message: str) -> None:
    payload = _payload()
    mutate(payload)
    with pytest.raises(ConfigError, match=message):
        parse_config(payload, base_dir=tmp_path)


def test_load_config_reads_yaml(tmp_path: Path) -> None:
    path = tmp_path / "nraexport.yaml"
    path.write_text(yaml.safe_dump(_payload(), sort_keys=False), encoding="utf-8")
    cfg = load_config(path)
    assert cfg.config_path == path.resolve()
    assert len(cfg.reports) == 3


def test_load_config_errors(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "missing.yaml")
    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")
    with pytest.raises(ConfigError, match="empty"):
        load_config(empty)
