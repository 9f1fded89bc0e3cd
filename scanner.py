import os
from typing import Iterable, Generator, List
from logger import setup_logger

logger = setup_logger()


class Scanner:
    def __init__(self, extensions: Iterable[str]):
        self.extensions = {ext.lower().lstrip(".") for ext in extensions}
        self.missing: List[str] = []

    def expand(self, paths: Iterable[str]) -> Generator[str, None, None]:
        """
        Yields files given directly, and media files found directly inside given directories.
        """
        self.missing = []
        for path in paths:
            if os.path.isdir(path):
                yield from self._scan_dir(path)
            elif os.path.exists(path):
                yield path
            else:
                logger.error(f"Input not found, skipping: {path}")
                self.missing.append(path)

    def _scan_dir(self, directory: str) -> Generator[str, None, None]:
        logger.info(f"Scanning {directory} for {sorted(self.extensions)}...")
        for name in sorted(os.listdir(directory)):
            file_path = os.path.join(directory, name)
            if not os.path.isfile(file_path):
                continue

            ext = os.path.splitext(name)[1].lower().lstrip(".")
            if ext not in self.extensions:
                logger.debug(f"Skipping {name}: not a media file")
                continue

            logger.info(f"Found candidate: {file_path}")
            yield file_path
