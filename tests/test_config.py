"""Tests for ContextVar-based match configuration."""

import threading

import pytest

from ristra import ChunkedTextSource, Pattern
from ristra.config import (
    MIN_CHUNK_CAPACITY,
    MatchConfig,
    get_match_config,
    match_config_context,
    reset_match_config,
    set_match_config,
)


class TestMatchConfig:
    """Test MatchConfig dataclass."""

    def test_defaults(self) -> None:
        config = MatchConfig()
        assert config.chunk_capacity == 64
        assert config.validate_windows is __debug__

    def test_frozen(self) -> None:
        config = MatchConfig()
        with pytest.raises(AttributeError):
            config.chunk_capacity = 8  # type: ignore[misc]

    def test_minimum_capacity(self) -> None:
        assert MatchConfig(chunk_capacity=MIN_CHUNK_CAPACITY).chunk_capacity == 2
        with pytest.raises(ValueError, match="chunk_capacity"):
            MatchConfig(chunk_capacity=1)

    def test_from_dict_ignores_unknown_keys(self) -> None:
        config = MatchConfig.from_dict({"chunk_capacity": 16, "unknown": True})
        assert config.chunk_capacity == 16
        assert config.validate_windows is __debug__

    def test_from_dict_empty(self) -> None:
        assert MatchConfig.from_dict({}) == MatchConfig()


class TestConfigAccess:
    def teardown_method(self) -> None:
        reset_match_config()

    def test_set_and_get(self) -> None:
        config = MatchConfig(chunk_capacity=8)
        set_match_config(config)
        assert get_match_config() is config

    def test_reset_restores_default(self) -> None:
        set_match_config(MatchConfig(chunk_capacity=8))
        reset_match_config()
        assert get_match_config().chunk_capacity == 64


class TestMatchConfigContext:
    def test_context_sets_and_restores(self) -> None:
        with match_config_context(MatchConfig(chunk_capacity=4)):
            assert get_match_config().chunk_capacity == 4
        assert get_match_config().chunk_capacity == 64

    def test_nested(self) -> None:
        with match_config_context(MatchConfig(chunk_capacity=4)):
            with match_config_context(MatchConfig(chunk_capacity=8)):
                assert get_match_config().chunk_capacity == 8
            assert get_match_config().chunk_capacity == 4

    def test_restores_on_exception(self) -> None:
        with pytest.raises(ValueError, match="test"):
            with match_config_context(MatchConfig(chunk_capacity=4)):
                raise ValueError("test")
        assert get_match_config().chunk_capacity == 64

    def test_sources_pick_up_active_config(self) -> None:
        with match_config_context(MatchConfig(chunk_capacity=4, validate_windows=False)):
            source = ChunkedTextSource("hello world")
        assert source.capacity == 4
        assert source.access(0)
        assert source.chunk_native_limit == 4

    def test_cursor_windows_use_active_config(self) -> None:
        pattern = Pattern("o")
        with match_config_context(MatchConfig(chunk_capacity=3)):
            cursor = pattern.matches("hello world")
        text = cursor.lease.handle.text
        assert text is not None
        assert text.capacity == 3
        assert [m.range for m in cursor] == [(4, 5), (7, 8)]


class TestThreadIsolation:
    def test_threads_see_default(self) -> None:
        seen: list[int] = []

        def worker() -> None:
            seen.append(get_match_config().chunk_capacity)

        with match_config_context(MatchConfig(chunk_capacity=4)):
            thread = threading.Thread(target=worker)
            thread.start()
            thread.join()

        assert seen == [64]

    def test_thread_settings_do_not_leak(self) -> None:
        def worker() -> None:
            set_match_config(MatchConfig(chunk_capacity=4))

        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()
        assert get_match_config().chunk_capacity == 64
