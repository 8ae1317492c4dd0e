# tests/conftest.py
from __future__ import annotations

import pytest
from loguru import logger

from prepstage.config.app_config import AppConfig
from prepstage.config.engine_config import EngineConfig
from prepstage.config.preparator_config import PreparatorConfig
from prepstage.engine.context import ExecutionContext
from prepstage.engine.types import ExecutionBackend


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)
    yield


@pytest.fixture
def log_messages():
    """
    Capture loguru messages (WARNING and above) emitted during a test.
    """
    messages: list[str] = []
    sink_id = logger.add(
        lambda msg: messages.append(msg.record["message"]), level="WARNING"
    )
    yield messages
    logger.remove(sink_id)


@pytest.fixture
def make_engine():
    """
    Factory fixture for ExecutionContext (testing only).

    Usage:
        engine = make_engine()
        engine = make_engine(backend="thread", max_workers=4)
        engine = make_engine(size_limit_bytes=64, size_limit_strict=True)
    """

    def _make(
            backend: str = "serial",
            max_workers: int | None = None,
            default_partitions: int = 2,
            size_limit_bytes: int | None = None,
            size_limit_strict: bool = False,
    ) -> ExecutionContext:
        cfg = AppConfig(
            engine=EngineConfig(
                app_name="test",
                backend=ExecutionBackend(backend),
                max_workers=max_workers,
                default_partitions=default_partitions,
            ),
            preparator=PreparatorConfig(
                size_limit_bytes=size_limit_bytes,
                size_limit_strict=size_limit_strict,
            ),
        )
        return ExecutionContext(cfg)

    return _make


@pytest.fixture
def engine(make_engine) -> ExecutionContext:
    return make_engine()


@pytest.fixture(params=["serial", "thread"])
def any_engine(request, make_engine) -> ExecutionContext:
    return make_engine(backend=request.param, max_workers=4)
