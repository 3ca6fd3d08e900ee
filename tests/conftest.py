"""Shared pytest fixtures for plugmate tests."""

from pathlib import Path

import pytest

from plugmate.plugins.catalog import invalidate_cache
from plugmate.utils.logging import logger


@pytest.fixture(autouse=True)
def fresh_catalog_cache():
    """Clear the process-wide catalog cache around every test."""
    invalidate_cache()
    yield
    invalidate_cache()


@pytest.fixture(autouse=True)
def reset_logger():
    logger.set_debug(False)
    logger.set_quiet(False)
    yield
    logger.set_quiet(False)


@pytest.fixture
def base_dir(tmp_path):
    """A base directory with an empty ``plugins`` folder."""
    (tmp_path / "plugins").mkdir()
    return tmp_path


@pytest.fixture
def plugins_dir(base_dir):
    return base_dir / "plugins"


@pytest.fixture
def write_plugin(plugins_dir):
    """Write a file under the plugins directory and return its path."""
    def _write(relative: str, content: str = "") -> Path:
        path = plugins_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path
    return _write
