"""Shared fixtures: fake proxy and in-memory store."""

from __future__ import annotations

import pytest
from fakes import FakeLayer, FakeProxy

from nraexport.storage import build_session_factory


@pytest.fixture
def session_factory():
    factory = build_session_factory("sqlite://")
    yield factory
    factory.kw["bind"].dispose()


@pytest.fixture
def tungsten_stack() -> list[FakeLayer]:
    return [
        FakeLayer(10.0, {"W": 0.1, "Fe": 0.9}, roughness=1.5),
        FakeLayer(20.0, {"W": 0.2, "Fe": 0.8}),
        FakeLayer(30.0, {"Fe": 1.0}),
    ]


@pytest.fixture
def proxy(tungsten_stack: list[FakeLayer]) -> FakeProxy:
    return FakeProxy(layers=tungsten_stack)
