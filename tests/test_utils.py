"""Tests for Ristra utility modules."""

import logging


class TestGetLogger:
    def test_prefixes_bare_name(self) -> None:
        from ristra.utils import get_logger

        assert get_logger("pool").name == "ristra.pool"

    def test_keeps_package_name(self) -> None:
        from ristra.utils.logger import get_logger

        assert get_logger("ristra.pool").name == "ristra.pool"
        assert get_logger("ristra").name == "ristra"

    def test_returns_stdlib_logger(self) -> None:
        from ristra.utils.logger import get_logger

        assert isinstance(get_logger("x"), logging.Logger)
