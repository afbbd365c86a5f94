from config.models import LoggingConfig
from utils.logger import setup_logger


def test_file_sink_receives_debug_messages(tmp_path):
    log_file = tmp_path / "prfold.log"
    logger = setup_logger(LoggingConfig(level="WARNING", file=str(log_file)))

    logger.debug("folding 3 messages")
    # Resetting removes the file sink, which drains its queue
    setup_logger()

    assert "folding 3 messages" in log_file.read_text(encoding="utf-8")


def test_no_file_sink_by_default(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    logger = setup_logger()

    logger.info("nothing to write")

    assert list(tmp_path.iterdir()) == []
