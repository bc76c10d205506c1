"""Shared pytest fixtures for docline tests."""

from __future__ import annotations

import random
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING

import pytest

from docline.config import Settings, get_settings
from docline.transform.dom import body_of, parse_document
from docline.transform.options import TransformOptions

if TYPE_CHECKING:
    from lxml.html import HtmlElement


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    """Each test sees settings built from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def options() -> TransformOptions:
    """Import-mode options with a seeded identifier source."""
    return TransformOptions(rng=random.Random(1234))


@pytest.fixture
def paste_options() -> TransformOptions:
    return TransformOptions(env="paste", rng=random.Random(1234))


@pytest.fixture
def parse_body() -> Callable[[str], HtmlElement]:
    """Parse markup and return its ``<body>``."""

    def _parse(markup: str) -> HtmlElement:
        return body_of(parse_document(markup))

    return _parse


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Settings with no .env file and no docline variables from the shell."""
    import os

    for key in list(os.environ):
        if key.startswith(("CONVERTER__", "IMAGES__", "APP__")):
            monkeypatch.delenv(key, raising=False)
    return Settings(_env_file=None)  # type: ignore[call-arg]
