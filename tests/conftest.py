"""Fixtures shared by every test package."""

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from brainrot.cache.cache import Cache
from brainrot.cache.stores.inmemory import InMemoryCacheAdapter
from brainrot.config import get_settings
from brainrot.config.settings import set_toml_config
from brainrot.utils.time import ManualClock

# 2023-11-14T22:13:20Z
START_MS = 1_700_000_000_000


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(START_MS)


@pytest.fixture
def memory_adapter(clock: ManualClock) -> InMemoryCacheAdapter:
    return InMemoryCacheAdapter(clock=clock)


@pytest.fixture
def cache(memory_adapter: InMemoryCacheAdapter) -> Cache:
    """Cache facade whose entries expire on the shared test clock."""
    return Cache(memory_adapter)


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Write {filename: toml_text} pairs into test_config_dir."""

    def write(files: dict[str, str]) -> None:
        for name, text in files.items():
            (test_config_dir / name).write_text(text)

    return write


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Iterator[None]:
    """Start and finish every test with no cached Settings and no TOML layer."""
    get_settings.cache_clear()
    set_toml_config({})
    yield
    get_settings.cache_clear()
    set_toml_config({})
