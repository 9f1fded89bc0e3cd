import io
import logging

from logger import redirect_console


def test_redirect_console_moves_stream_handlers_only(tmp_path):
    logger = logging.getLogger("m4v_converter_redirect")
    console = logging.StreamHandler(io.StringIO())
    log_file = logging.FileHandler(str(tmp_path / "run.log"))
    logger.addHandler(console)
    logger.addHandler(log_file)
    target = io.StringIO()
    try:
        redirect_console(target, name="m4v_converter_redirect")
        assert console.stream is target
        assert log_file.stream is not target
    finally:
        logger.removeHandler(console)
        logger.removeHandler(log_file)
        log_file.close()
