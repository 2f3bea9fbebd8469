from __future__ import annotations

import logging
from typing import Iterator

import pytest

from udiscan.logging_conf import LEVEL_ENV, configure_logging, resolve_level


@pytest.fixture(autouse=True)
def restore_levels(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.delenv(LEVEL_ENV, raising=False)
    root = logging.getLogger()
    urllib3 = logging.getLogger("urllib3")
    saved = (root.level, urllib3.level)
    yield
    root.setLevel(saved[0])
    urllib3.setLevel(saved[1])


def test_verbose_flag_selects_debug() -> None:
    assert resolve_level(verbose=False) == logging.INFO
    assert resolve_level(verbose=True) == logging.DEBUG


def test_env_overrides_verbose_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(LEVEL_ENV, "warning")

    assert configure_logging(verbose=True) == logging.WARNING
    assert logging.getLogger().level == logging.WARNING


def test_unknown_env_level_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(LEVEL_ENV, "chatty")

    assert resolve_level(verbose=True) == logging.DEBUG


def test_urllib3_quiet_unless_verbose() -> None:
    configure_logging(verbose=False)
    assert logging.getLogger("urllib3").level == logging.WARNING

    configure_logging(verbose=True)
    assert logging.getLogger("urllib3").level == logging.DEBUG
    assert logging.getLogger().level == logging.DEBUG
