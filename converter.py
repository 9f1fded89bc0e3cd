import re
import subprocess
import shutil
from collections import deque
from typing import IO, Iterator, List, Optional
from models.media_info import ConversionPlan, EncoderSettings
from exceptions import ConverterError, TranscodeError
from progress import ProgressMonitor
from logger import setup_logger

logger = setup_logger()

# ffmpeg ends status lines with \r and everything else with \n
LINE_BREAK = re.compile(rb"\r\n|\r|\n")
OUTPUT_TAIL_LINES = 20


def iter_output_lines(stream: IO[bytes], chunk_size: int = 4096) -> Iterator[bytes]:
    buffer = b""
    read = getattr(stream, "read1", stream.read)
    for chunk in iter(lambda: read(chunk_size), b""):
        buffer += chunk
        *lines, buffer = LINE_BREAK.split(buffer)
        for line in lines:
            if line:
                yield line
    if buffer:
        yield buffer


class Converter:
    def __init__(self, settings: Optional[EncoderSettings] = None, require_ffmpeg: bool = True):
        self.settings = settings or EncoderSettings()
        self.ffmpeg_path = shutil.which(self.settings.ffmpeg_path)
        if not self.ffmpeg_path:
            if require_ffmpeg:
                raise FileNotFoundError("FFmpeg not found")
            self.ffmpeg_path = self.settings.ffmpeg_path

    def command(self, plan: ConversionPlan) -> List[str]:
        return plan.command(self.ffmpeg_path)

    def dump(self, plan: ConversionPlan) -> str:
        return plan.render(self.ffmpeg_path)

    def run(self, plan: ConversionPlan, duration: int, show_progress: bool = True):
        """
        Runs ffmpeg for the plan, feeding its merged output to a progress bar.
        Raises TranscodeError on a non-zero exit; the partial output is left on disk.
        """
        cmd = self.command(plan)
        logger.info(f"Starting TRANSCODE: {plan.input_path} -> {plan.output_path}")
        logger.debug(f"Command: {self.dump(plan)}")

        tail = deque(maxlen=OUTPUT_TAIL_LINES)
        with ProgressMonitor(duration, label=plan.output_path, disable=not show_progress) as monitor:
            try:
                process = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT)
            except OSError as e:
                raise ConverterError(f"Could not start ffmpeg for {plan.input_path}: {e}") from e
            try:
                for line in iter_output_lines(process.stdout):
                    if not monitor.feed(line).matched:
                        tail.append(line.decode("utf-8", errors="replace"))
                returncode = process.wait()
            except KeyboardInterrupt:
                logger.warning(f"Interrupted, stopping ffmpeg. Partial output left at {plan.output_path}")
                process.terminate()
                process.wait()
                raise
            finally:
                process.stdout.close()

            if returncode != 0:
                raise TranscodeError(plan.input_path, returncode, "\n".join(tail))
            monitor.finish()

        logger.info(f"DONE: new_file=\"{plan.output_path}\"")
