import os
import shlex
from pydantic import BaseModel, ConfigDict, field_validator
from typing import Tuple, Optional


class VideoStream(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int  # position among video streams
    codec: str
    width: int = 0
    height: int = 0


class AudioStream(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int  # position among audio streams
    codec: str
    channels: int
    language: str = "eng"
    title: Optional[str] = None


class SubtitleStream(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int  # position among subtitle streams
    codec: str
    language: str = "eng"
    title: Optional[str] = None
    forced: bool = False
    hearing_impaired: bool = False


class MediaInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    filename: str
    duration: int = 0  # whole seconds
    video_streams: Tuple[VideoStream, ...] = ()
    audio_streams: Tuple[AudioStream, ...] = ()
    subtitle_streams: Tuple[SubtitleStream, ...] = ()


class Selection(BaseModel):
    """At most one stream of each type, picked from a MediaInfo."""
    model_config = ConfigDict(frozen=True)

    filename: str
    duration: int = 0
    video: Optional[VideoStream] = None
    audio: Optional[AudioStream] = None
    subtitle: Optional[SubtitleStream] = None


class ConversionPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    input_path: str
    output_path: str
    suffix: str  # "m4v" or "m4a"
    arguments: Tuple[str, ...]

    def command(self, ffmpeg_path: str = "ffmpeg") -> list:
        return [ffmpeg_path, *self.arguments]

    def render(self, ffmpeg_path: str = "ffmpeg") -> str:
        return shlex.join(self.command(ffmpeg_path))


class Options(BaseModel):
    model_config = ConfigDict(frozen=True)

    sd: bool = False
    dump: bool = False
    subtitles: bool = False
    files: Tuple[str, ...] = ()
    output_dir: str = os.curdir


class EncoderSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"

    # Video
    video_codec: str = "h264"
    video_encoder: str = "libx264"
    video_preset: str = "slow"
    video_profile: str = "main"
    crf: int = 20
    threads: int = 0
    sd_width: int = 720

    # Audio
    stereo_bitrate: str = "160k"
    surround_bitrate: str = "640k"
    surround_channels: int = 6
    audio_only_bitrate: str = "256k"
    dts_gain: str = "2.0"

    subtitle_codec: str = "mov_text"
    language: str = "eng"

    audio_extensions: Tuple[str, ...] = (
        "mp3", "flac", "m4a", "aac", "wav", "ogg", "oga", "opus",
        "wma", "aiff", "aif", "ape", "alac",
    )
    video_extensions: Tuple[str, ...] = (
        "mkv", "mp4", "m4v", "avi", "mov", "wmv", "ts", "m2ts", "mpg", "mpeg", "webm", "flv",
    )

    log_file: str = "logs/converter.log"

    @field_validator("video_codec", "language")
    @classmethod
    def _lowercase(cls, value: str) -> str:
        # ffprobe codec names and normalized language tags are lower case
        return value.lower()

    @field_validator("audio_extensions", "video_extensions")
    @classmethod
    def _normalize_extensions(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(ext.lower().lstrip(".") for ext in value)
