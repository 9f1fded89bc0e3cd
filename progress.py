import re
from typing import NamedTuple, Optional, Union
from tqdm import tqdm
from logger import setup_logger

logger = setup_logger()

# frame=  812 fps= 41 q=28.0 size=    4608kB time=00:00:33.86 bitrate=1114.6kbits/s speed=1.71x
TIME_PATTERN = re.compile(r"time=\s*(\d+):(\d{2}):(\d{2})")


class ProgressMatch(NamedTuple):
    matched: bool
    seconds: int = 0


UNMATCHED = ProgressMatch(False)


def parse_progress_line(line: Union[str, bytes]) -> ProgressMatch:
    """
    Extracts the elapsed encode time (HH:MM:SS) from one line of ffmpeg output.
    """
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError:
            return UNMATCHED

    match = TIME_PATTERN.search(line)
    if not match:
        return UNMATCHED
    hours, minutes, seconds = (int(part) for part in match.groups())
    return ProgressMatch(True, hours * 3600 + minutes * 60 + seconds)


class ProgressMonitor:
    def __init__(self, duration: int, label: str = "", disable: bool = False):
        # +1 so that zero-length media still has a non-empty total
        self.total = duration + 1
        self.position = 0
        self.bar: Optional[tqdm] = tqdm(
            total=self.total, desc=label, unit="s", leave=True, disable=disable,
        )

    @property
    def fraction(self) -> float:
        return min(self.position / self.total, 1.0)

    def feed(self, line: Union[str, bytes]) -> ProgressMatch:
        result = parse_progress_line(line)
        if result.matched:
            self._advance(min(result.seconds, self.total))
        return result

    def finish(self):
        if self.bar is None:
            return
        self._advance(self.total)
        self.bar.close()
        self.bar = None

    def close(self):
        """Stops displaying without marking the run complete."""
        if self.bar is not None:
            self.bar.close()
            self.bar = None

    def _advance(self, seconds: int):
        if seconds <= self.position:
            return
        if self.bar is not None:
            self.bar.update(seconds - self.position)
        self.position = seconds
        logger.debug(f"Progress {self.position}/{self.total}s ({self.fraction:.1%})")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
