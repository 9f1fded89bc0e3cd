import io
from unittest.mock import MagicMock, patch

import pytest

import converter as converter_module
from converter import Converter, iter_output_lines
from exceptions import TranscodeError
from models.media_info import ConversionPlan

PLAN = ConversionPlan(
    input_path="/media/movie.mkv",
    output_path="./movie.m4v",
    suffix="m4v",
    arguments=("-i", "/media/movie.mkv", "-y", "-hide_banner", "-map", "0:v:0", "-c:v", "copy",
               "-movflags", "+faststart", "./movie.m4v"),
)


def _converter():
    with patch("converter.shutil.which", return_value="/usr/bin/ffmpeg"):
        return Converter()


def _process(output: bytes, returncode: int = 0):
    process = MagicMock()
    process.stdout = io.BytesIO(output)
    process.wait.return_value = returncode
    return process


def test_requires_ffmpeg():
    with patch("converter.shutil.which", return_value=None):
        with pytest.raises(FileNotFoundError):
            Converter()


def test_dump_mode_does_not_need_ffmpeg():
    with patch("converter.shutil.which", return_value=None):
        converter = Converter(require_ffmpeg=False)
    assert converter.command(PLAN)[0] == "ffmpeg"


def test_dump_renders_the_executed_command():
    converter = _converter()
    process = _process(b"")
    with patch("converter.subprocess.Popen", return_value=process) as popen:
        converter.run(PLAN, 10, show_progress=False)

    executed = popen.call_args[0][0]
    assert executed == ["/usr/bin/ffmpeg", *PLAN.arguments]
    assert converter.dump(PLAN) == " ".join(executed)


def test_dump_quotes_paths_with_spaces():
    plan = PLAN.model_copy(update={"arguments": ("-i", "/media/My Movie.mkv", "My Movie.m4v")})
    assert "'/media/My Movie.mkv'" in _converter().dump(plan)


def test_output_lines_split_on_carriage_returns():
    stream = io.BytesIO(b"Input #0\nframe=1 time=00:00:01.00\rframe=2 time=00:00:02.00\r\nlast")
    assert list(iter_output_lines(stream, chunk_size=7)) == [
        b"Input #0", b"frame=1 time=00:00:01.00", b"frame=2 time=00:00:02.00", b"last",
    ]


def test_run_reports_progress():
    output = b"Duration: 00:00:10.00\nframe=1 time=00:00:04.00 speed=1x\rframe=2 time=00:00:09.00 speed=1x\r"
    monitors = []
    real_monitor = converter_module.ProgressMonitor

    def tracking_monitor(*args, **kwargs):
        monitor = real_monitor(*args, **kwargs)
        monitors.append(monitor)
        return monitor

    converter = _converter()
    with patch("converter.subprocess.Popen", return_value=_process(output)), \
            patch("converter.ProgressMonitor", side_effect=tracking_monitor):
        converter.run(PLAN, 10, show_progress=False)

    assert monitors[0].total == 11
    assert monitors[0].fraction == 1.0


def test_failed_transcode_raises_with_output_tail():
    converter = _converter()
    process = _process(b"Unknown encoder 'libx264'\n", returncode=1)
    with patch("converter.subprocess.Popen", return_value=process):
        with pytest.raises(TranscodeError) as excinfo:
            converter.run(PLAN, 10, show_progress=False)

    assert excinfo.value.returncode == 1
    assert "Unknown encoder" in excinfo.value.output_tail


def test_interrupt_terminates_ffmpeg():
    converter = _converter()
    process = MagicMock()
    process.stdout.read1.side_effect = KeyboardInterrupt
    with patch("converter.subprocess.Popen", return_value=process):
        with pytest.raises(KeyboardInterrupt):
            converter.run(PLAN, 10, show_progress=False)

    process.terminate.assert_called_once()


def test_unstartable_ffmpeg_is_a_converter_error():
    converter = _converter()
    with patch("converter.subprocess.Popen", side_effect=FileNotFoundError("ffmpeg")):
        with pytest.raises(converter_module.ConverterError, match="Could not start ffmpeg"):
            converter.run(PLAN, 10, show_progress=False)
