import logging
from pathlib import Path

from logging_utils import get_error_info, log_exception, setup_run_logging


def test_setup_run_logging_writes_run_file(tmp_path):
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    try:
        run_logger, log_path = setup_run_logging(str(tmp_path / "logs"), "Clay Mask / Deluxe")
        run_logger.info("hello from the run")
        for handler in root.handlers:
            handler.flush()

        path = Path(log_path)
        assert path.parent == tmp_path / "logs"
        assert path.name.startswith("run_clay_mask_deluxe_")
        content = path.read_text(encoding="utf-8")
        assert "Product: Clay Mask / Deluxe" in content
        assert "hello from the run" in content
    finally:
        for handler in list(root.handlers):
            handler.close()
            root.removeHandler(handler)
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)


def test_log_exception_includes_context(caplog):
    logger = logging.getLogger("test_logging_utils")
    try:
        raise ValueError("bad payload")
    except ValueError as exc:
        with caplog.at_level(logging.ERROR, logger="test_logging_utils"):
            log_exception(logger, exc, context="analyze", product="Clay Mask")

    text = caplog.text
    assert "analyze - Exception occurred: ValueError: bad payload" in text
    assert "Traceback" in text
    assert "'product': 'Clay Mask'" in text


def test_get_error_info_shape():
    info = get_error_info(RuntimeError("boom"), {"route": "/api/analyze"})
    assert info["error_type"] == "RuntimeError"
    assert info["message"] == "boom"
    assert info["context"] == {"route": "/api/analyze"}
    assert info["timestamp"]
