from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from tests._fixtures.api_builder import ApiBuilder


@pytest.fixture
def api_builder(tmp_path: Path) -> ApiBuilder:
    """Provide a workspace with an empty api directory rooted at tmp_path."""
    return ApiBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _propagate_callergen_logs() -> Iterator[None]:
    """Keep callergen records visible to caplog even after the CLI configures logging."""
    logger = logging.getLogger("callergen")
    logger.propagate = True
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
