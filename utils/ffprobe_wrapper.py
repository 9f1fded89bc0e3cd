import subprocess
import json
import os
import shutil
from typing import Optional, Dict, Any, Union
from pydantic import ValidationError
from models.media_info import MediaInfo, VideoStream, AudioStream, SubtitleStream
from exceptions import ProbeError, ParseError
from logger import setup_logger

logger = setup_logger()

DEFAULT_LANGUAGE = "eng"
UNDETERMINED = "und"


def normalize_language(tags: Optional[Dict[str, Any]]) -> str:
    language = (tags or {}).get("language")
    if not language or language.lower() == UNDETERMINED:
        return DEFAULT_LANGUAGE
    return language.lower()


def parse_probe_output(raw: Union[str, bytes, Dict[str, Any]], include_subtitles: bool = False) -> MediaInfo:
    """
    Builds a MediaInfo from ffprobe's JSON output (-show_format -show_streams).

    Streams are bucketed by codec_type and numbered by their position among
    streams of the same type, which is how ffmpeg's 0:a:N syntax addresses them.
    Subtitle streams are dropped unless include_subtitles is set.
    """
    if isinstance(raw, dict):
        data = raw
    else:
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise ParseError(f"Probe output is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ParseError("Probe output is not a JSON object")
    fmt = data.get("format")
    if not isinstance(fmt, dict):
        raise ParseError("Probe output has no format section")

    streams = data.get("streams") or []
    if not isinstance(streams, list) or not all(isinstance(s, dict) for s in streams):
        raise ParseError("Probe output streams must be a list of objects")

    by_type = {
        "video": [s for s in streams if s.get("codec_type") == "video"],
        "audio": [s for s in streams if s.get("codec_type") == "audio"],
        "subtitle": [s for s in streams if s.get("codec_type") == "subtitle"] if include_subtitles else [],
    }

    try:
        video_streams = tuple(
            VideoStream(
                index=i,
                codec=s.get("codec_name") or "unknown",
                width=int(s.get("width") or 0),
                height=int(s.get("height") or 0),
            )
            for i, s in enumerate(by_type["video"])
        )

        audio_streams = tuple(
            AudioStream(
                index=i,
                codec=s.get("codec_name") or "unknown",
                channels=int(s.get("channels") or 0),
                language=normalize_language(s.get("tags")),
                title=(s.get("tags") or {}).get("title"),
            )
            for i, s in enumerate(by_type["audio"])
        )

        subtitle_streams = tuple(
            SubtitleStream(
                index=i,
                codec=s.get("codec_name") or "unknown",
                language=normalize_language(s.get("tags")),
                title=(s.get("tags") or {}).get("title"),
                forced=bool((s.get("disposition") or {}).get("forced", 0)),
                hearing_impaired=bool((s.get("disposition") or {}).get("hearing_impaired", 0)),
            )
            for i, s in enumerate(by_type["subtitle"])
        )
    except (AttributeError, TypeError, ValueError, ValidationError) as e:
        # e.g. tags that are not an object, or a non-numeric width
        raise ParseError(f"Malformed stream entry in probe output: {e}") from e

    try:
        duration = int(float(fmt.get("duration", 0)))
    except (TypeError, ValueError):
        logger.warning(f"Unreadable duration {fmt.get('duration')!r} in probe output, using 0")
        duration = 0

    return MediaInfo(
        filename=fmt.get("filename", ""),
        duration=duration,
        video_streams=video_streams,
        audio_streams=audio_streams,
        subtitle_streams=subtitle_streams,
    )


class FFprobeWrapper:
    def __init__(self, ffprobe_path: str = "ffprobe"):
        self.ffprobe_path = shutil.which(ffprobe_path)
        if not self.ffprobe_path:
            logger.error("FFprobe not found in system PATH")
            raise FileNotFoundError("FFprobe not found. Please install FFmpeg.")

    def get_media_info(self, file_path: str, include_subtitles: bool = False) -> MediaInfo:
        """
        Runs ffprobe on the file and returns a MediaInfo object.
        """
        if not os.path.exists(file_path):
            raise ProbeError(f"File not found: {file_path}")

        cmd = [
            self.ffprobe_path,
            "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            file_path
        ]

        try:
            result = subprocess.run(cmd, capture_output=True, text=True, encoding='utf-8', errors='replace')
        except OSError as e:
            raise ProbeError(f"Could not run ffprobe for {file_path}: {e}") from e

        if result.returncode != 0:
            raise ProbeError(f"FFprobe failed for {file_path}: {result.stderr.strip() or result.returncode}")

        info = self._with_filename(parse_probe_output(result.stdout, include_subtitles), file_path)
        logger.debug(f"Probed {file_path}: duration={info.duration}s "
                     f"video={len(info.video_streams)} audio={len(info.audio_streams)} "
                     f"subtitles={len(info.subtitle_streams)}")
        return info

    @staticmethod
    def _with_filename(info: MediaInfo, file_path: str) -> MediaInfo:
        # ffprobe echoes the path it was given; fall back to it if the field is missing
        if info.filename:
            return info
        return info.model_copy(update={"filename": file_path})
