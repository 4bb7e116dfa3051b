"""Config loading and parsing."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Mapping

import yaml

from ..elements import normalize_element_name
from ..errors import ConfigError
from .models import (
    AppConfig,
    DatabaseConfig,
    DepthConfig,
    DepthProfileReportConfig,
    FirstLayerReportConfig,
    FractionAtThicknessReportConfig,
    LoggingConfig,
    RadiusConfig,
    ReportConfig,
    SyncConfig,
    ThicknessUntilFractionReportConfig,
    WatchConfig,
)
from .validators import (
    as_mapping,
    ensure_choice,
    ensure_fraction,
    ensure_nonnegative,
    opt_mapping,
    required,
    to_bool,
    to_float,
    to_int,
    to_int_list,
    to_str,
    to_str_list,
)

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


def _resolve(base_dir: Path, value: Any, key: str, context: str) -> Path:
    path = Path(to_str(value, key, context))
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    return path


def _resolve_db_url(base_dir: Path, url: str) -> str:
    prefix = "sqlite:///"
    if not url.startswith(prefix):
        return url
    db_path = url[len(prefix):]
    if not db_path or db_path == ":memory:" or Path(db_path).is_absolute():
        return url
    return prefix + str((base_dir / db_path).resolve())


def _element(value: Any, key: str, context: str) -> str:
    return normalize_element_name(to_str(value, key, context))


def parse_watch_config(payload: Mapping[str, Any], base_dir: Path) -> WatchConfig:
    ctx = "watch"
    watch = as_mapping(required(payload, "watch", "config"), ctx)
    extensions = to_str_list(watch.get("extensions", [".xnra"]), "extensions", ctx)
    extensions = [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in extensions]
    poll = ensure_nonnegative(
        f"{ctx}.poll_interval_s", to_float(watch.get("poll_interval_s", 2.0), "poll_interval_s", ctx), allow_zero=False
    )
    return WatchConfig(
        root=_resolve(base_dir, required(watch, "root", ctx), "root", ctx),
        recursive=to_bool(watch.get("recursive", True), "recursive", ctx),
        extensions=extensions,
        poll_interval_s=poll,
        on_start=to_bool(watch.get("on_start", True), "on_start", ctx),
        on_update=to_bool(watch.get("on_update", True), "on_update", ctx),
    )


def parse_sync_config(payload: Mapping[str, Any]) -> SyncConfig:
    ctx = "sync"
    sync = opt_mapping(payload.get("sync"), ctx)
    dat_extension = to_str(sync.get("dat_extension", ".dat"), "dat_extension", ctx)
    if not dat_extension.startswith("."):
        dat_extension = f".{dat_extension}"
    max_workers = to_int(sync.get("max_workers", 8), "max_workers", ctx)
    if max_workers < 1:
        raise ValueError(f"{ctx}.max_workers must be >= 1.")
    return SyncConfig(
        instance_name=to_str(sync.get("instance_name", "Main"), "instance_name", ctx),
        settle_delay_s=ensure_nonnegative(
            f"{ctx}.settle_delay_s", to_float(sync.get("settle_delay_s", 0.1), "settle_delay_s", ctx)
        ),
        dat_dirname=to_str(sync.get("dat_dirname", "dat"), "dat_dirname", ctx),
        dat_extension=dat_extension,
        max_workers=max_workers,
        compute_max_depth=to_bool(sync.get("compute_max_depth", False), "compute_max_depth", ctx),
    )


def _parse_first_layer(report: Mapping[str, Any], ctx: str, base_dir: Path) -> FirstLayerReportConfig:
    files = to_str_list(required(report, "files", ctx), "files", ctx)
    elements = to_str_list(report.get("elements", ["Fe", "W", "O"]), "elements", ctx)
    return FirstLayerReportConfig(
        name=to_str(required(report, "name", ctx), "name", ctx),
        output=_resolve(base_dir, required(report, "output", ctx), "output", ctx),
        files=[_resolve(base_dir, f, "files", ctx) for f in files],
        elements=[_element(el, "elements", ctx) for el in elements],
    )


def _parse_depth_profile(report: Mapping[str, Any], ctx: str, base_dir: Path) -> DepthProfileReportConfig:
    return DepthProfileReportConfig(
        name=to_str(required(report, "name", ctx), "name", ctx),
        output=_resolve(base_dir, required(report, "output", ctx), "output", ctx),
        file=_resolve(base_dir, required(report, "file", ctx), "file", ctx),
        element=_element(required(report, "element", ctx), "element", ctx),
        insert_zero_layer=to_bool(report.get("insert_zero_layer", False), "insert_zero_layer", ctx),
        ignore_indices=to_int_list(report.get("ignore_indices", []), "ignore_indices", ctx),
        ignore_last=to_bool(report.get("ignore_last", True), "ignore_last", ctx),
        plot=to_bool(report.get("plot", False), "plot", ctx),
    )


def _labelled_files(report: Mapping[str, Any], ctx: str, base_dir: Path) -> tuple[list[Path], list[str]]:
    files = to_str_list(required(report, "files", ctx), "files", ctx)
    labels = to_str_list(required(report, "labels", ctx), "labels", ctx)
    if len(files) != len(labels):
        raise ValueError(f"{ctx}.labels must have the same length as {ctx}.files ({len(labels)} != {len(files)}).")
    return [_resolve(base_dir, f, "files", ctx) for f in files], labels


def _parse_thickness_until_fraction(
    report: Mapping[str, Any], ctx: str, base_dir: Path
) -> ThicknessUntilFractionReportConfig:
    files, labels = _labelled_files(report, ctx, base_dir)
    threshold = to_float(required(report, "threshold_fraction", ctx), "threshold_fraction", ctx)
    return ThicknessUntilFractionReportConfig(
        name=to_str(required(report, "name", ctx), "name", ctx),
        output=_resolve(base_dir, required(report, "output", ctx), "output", ctx),
        files=files,
        labels=labels,
        element=_element(required(report, "element", ctx), "element", ctx),
        threshold_fraction=ensure_fraction(f"{ctx}.threshold_fraction", threshold),
    )


def _parse_fraction_at_thickness(
    report: Mapping[str, Any], ctx: str, base_dir: Path
) -> FractionAtThicknessReportConfig:
    files, labels = _labelled_files(report, ctx, base_dir)
    threshold = to_float(required(report, "threshold_thickness", ctx), "threshold_thickness", ctx)
    return FractionAtThicknessReportConfig(
        name=to_str(required(report, "name", ctx), "name", ctx),
        output=_resolve(base_dir, required(report, "output", ctx), "output", ctx),
        files=files,
        labels=labels,
        element=_element(required(report, "element", ctx), "element", ctx),
        threshold_thickness=ensure_nonnegative(f"{ctx}.threshold_thickness", threshold),
    )


_REPORT_PARSERS: dict[str, Callable[[Mapping[str, Any], str, Path], ReportConfig]] = {
    "first_layer": _parse_first_layer,
    "depth_profile": _parse_depth_profile,
    "thickness_until_fraction": _parse_thickness_until_fraction,
    "fraction_at_thickness": _parse_fraction_at_thickness,
}


def parse_report_configs(payload: Mapping[str, Any], base_dir: Path) -> list[ReportConfig]:
    """Parse the ``reports`` list into typed report configs."""
    raw_reports = payload.get("reports", [])
    if raw_reports is None:
        return []
    if not isinstance(raw_reports, list):
        raise ValueError("config.reports must be a list.")

    typed: list[ReportConfig] = []
    seen_names: set[str] = set()
    for idx, raw in enumerate(raw_reports):
        ctx = f"reports[{idx}]"
        report = as_mapping(raw, ctx)
        rtype = str(required(report, "type", ctx)).lower()
        parse = _REPORT_PARSERS.get(rtype)
        if parse is None:
            raise ValueError(f"{ctx}.type '{rtype}' is not supported. Use one of: {', '.join(_REPORT_PARSERS)}.")
        parsed = parse(report, ctx, base_dir)
        key = str(parsed.output / parsed.name)
        if key in seen_names:
            raise ValueError(f"{ctx} writes '{parsed.name}' to {parsed.output}, which another report already does.")
        seen_names.add(key)
        typed.append(parsed)
    return typed


def parse_config(payload: Mapping[str, Any], *, base_dir: str | Path, config_path: str | Path | None = None) -> AppConfig:
    """Build a typed :class:`AppConfig` from an already-loaded mapping."""
    base = Path(base_dir)
    try:
        payload = as_mapping(payload, "config")
        database = opt_mapping(payload.get("database"), "database")
        depth = opt_mapping(payload.get("depth"), "depth")
        radius = opt_mapping(payload.get("radius"), "radius")
        logging_cfg = opt_mapping(payload.get("logging"), "logging")

        log_file = logging_cfg.get("file")
        return AppConfig(
            config_path=None if config_path is None else Path(config_path),
            watch=parse_watch_config(payload, base),
            database=DatabaseConfig(
                url=_resolve_db_url(base, to_str(database.get("url", "sqlite:///nraexport.db"), "url", "database"))
            ),
            sync=parse_sync_config(payload),
            depth=DepthConfig(
                stopping_policy=ensure_choice(  # type: ignore[arg-type]
                    "depth.stopping_policy", depth.get("stopping_policy", "remaining"), ("initial", "remaining")
                )
            ),
            radius=RadiusConfig(
                markers=to_str_list(radius.get("markers", ["r-"]), "markers", "radius"),
                terminators=to_str_list(
                    radius.get("terminators", ["_p-", "_FeW", "-FeW"]), "terminators", "radius", allow_empty=True
                ),
            ),
            logging=LoggingConfig(
                level=ensure_choice("logging.level", logging_cfg.get("level", "info"), LOG_LEVELS).upper(),
                file=None if log_file is None else _resolve(base, log_file, "file", "logging"),
            ),
            reports=parse_report_configs(payload, base),
        )
    except ConfigError:
        raise
    except (TypeError, ValueError) as exc:
        raise ConfigError(str(exc)) from exc


def load_config(config_path: str | Path) -> AppConfig:
    """Load and parse a YAML config file."""
    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            payload = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse YAML config: {path}") from exc

    if payload is None:
        raise ConfigError(f"Config is empty: {path}")
    path = path.resolve()
    return parse_config(payload, base_dir=path.parent, config_path=path)
