"""Unit tests for logging configuration."""

from pathlib import Path

from loguru import logger

from address_sync.core.logging import setup_logging


class TestLogging:
    """Tests for Loguru logging setup."""

    def test_setup_logging_does_not_raise(self) -> None:
        """setup_logging with valid log level does not raise."""
        setup_logging("DEBUG")
        setup_logging("INFO")
        setup_logging("WARNING")

    def test_setup_logging_case_insensitive(self) -> None:
        setup_logging("info")
        setup_logging("debug")

    def test_log_dir_creates_file_sink(self, tmp_path: Path) -> None:
        log_dir = tmp_path / "logs"
        setup_logging("INFO", log_dir=str(log_dir))
        logger.info("vendor address sync test record")
        # Reconfiguring removes (and closes) the file sink
        setup_logging("INFO")

        log_file = log_dir / "address-sync.log"
        assert log_file.exists()
        assert "vendor address sync test record" in log_file.read_text()
