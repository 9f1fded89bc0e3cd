from typing import Optional


class ConverterError(Exception):
    """Base class for errors raised while converting a file."""


class ProbeError(ConverterError):
    pass


class ParseError(ProbeError):
    pass


class PlanningError(ConverterError):
    pass


class ConfigError(ConverterError):
    pass


class TranscodeError(ConverterError):
    def __init__(self, path: str, returncode: int, output_tail: Optional[str] = None):
        self.path = path
        self.returncode = returncode
        self.output_tail = output_tail or ""
        super().__init__(f"ffmpeg exited with status {returncode} for {path}")
