"""
Turns a stream Selection into an ffmpeg argument list.

ffmpeg reads its arguments positionally, so a plan is assembled from three
blocks that are concatenated in a fixed order: stream maps (each immediately
followed by its language tag), per-stream codec options, then trailing muxer
options and the output path.
"""
import os
from typing import List, Optional
from models.media_info import (
    AudioStream, ConversionPlan, EncoderSettings, Options, Selection, VideoStream,
)
from exceptions import PlanningError
from logger import setup_logger

logger = setup_logger()

VIDEO_SUFFIX = "m4v"
AUDIO_SUFFIX = "m4a"

GLOBAL_OPTIONS = ["-y", "-hide_banner"]
TRAILING_OPTIONS = ["-movflags", "+faststart"]


class CommandPlanner:
    def __init__(self, settings: Optional[EncoderSettings] = None):
        self.settings = settings or EncoderSettings()

    def plan(self, selection: Selection, options: Options) -> ConversionPlan:
        maps: List[str] = []
        codecs: List[str] = []

        if self.is_audio_only(selection):
            suffix = AUDIO_SUFFIX
            if selection.audio:
                self._add_map(maps, "a", 0, selection.audio.index)
                codecs += self._audio_only_args(selection.audio)
        else:
            suffix = VIDEO_SUFFIX
            if selection.video:
                self._add_map(maps, "v", 0, selection.video.index)
                codecs += self._video_args(selection.video, options.sd)
            if selection.audio:
                codecs += self._audio_args(selection.audio, maps)
            if selection.video and selection.subtitle:
                self._add_map(maps, "s", 0, selection.subtitle.index)
                codecs += self._subtitle_args()

        output_path = self.output_path(selection.filename, suffix, options.output_dir)
        if os.path.abspath(output_path) == os.path.abspath(selection.filename):
            raise PlanningError(f"Output {output_path} would overwrite its own input")

        arguments = ["-i", selection.filename, *GLOBAL_OPTIONS, *maps, *codecs, *TRAILING_OPTIONS, output_path]
        return ConversionPlan(
            input_path=selection.filename,
            output_path=output_path,
            suffix=suffix,
            arguments=tuple(arguments),
        )

    def is_audio_only(self, selection: Selection) -> bool:
        if selection.video is None and selection.audio is not None:
            return True
        ext = os.path.splitext(selection.filename)[1].lower().lstrip(".")
        return ext in self.settings.audio_extensions

    @staticmethod
    def output_path(input_path: str, suffix: str, output_dir: str = os.curdir) -> str:
        base_name = os.path.splitext(os.path.basename(input_path))[0]
        return os.path.join(output_dir, f"{base_name}.{suffix}")

    def _add_map(self, maps: List[str], stream_type: str, output_index: int, source_index: int):
        maps.extend([
            "-map", f"0:{stream_type}:{source_index}",
            f"-metadata:s:{stream_type}:{output_index}", f"language={self.settings.language}",
        ])

    def _audio_only_args(self, stream: AudioStream) -> List[str]:
        codec = stream.codec.lower()
        if codec == "alac":
            return ["-c:a:0", "copy"]
        if codec == "flac":
            return ["-c:a:0", "alac"]
        return ["-c:a:0", "aac", "-b:a:0", self.settings.audio_only_bitrate]

    def _video_args(self, stream: VideoStream, downscale: bool) -> List[str]:
        s = self.settings
        if stream.codec.lower() == s.video_codec and not downscale:
            return ["-c:v", "copy"]

        args = [
            "-c:v", s.video_encoder,
            "-preset", s.video_preset,
            "-profile:v", s.video_profile,
            "-crf", str(s.crf),
            "-threads", str(s.threads),
        ]
        if downscale:
            # -2 keeps the height even, which libx264 requires
            args += ["-vf", f"scale={s.sd_width}:-2"]
        return args

    def _audio_args(self, stream: AudioStream, maps: List[str]) -> List[str]:
        s = self.settings
        codec = stream.codec.lower()

        # A. Stereo track
        self._add_map(maps, "a", 0, stream.index)
        if stream.channels <= 2:
            if codec == "aac":
                return ["-c:a:0", "copy"]
            return ["-c:a:0", "aac", "-b:a:0", s.stereo_bitrate]

        args = ["-c:a:0", "aac", "-b:a:0", s.stereo_bitrate, "-ac:a:0", "2"]
        if codec == "dts":
            # DTS tracks are mastered quietly; boost the downmix
            args += ["-filter:a:0", f"volume={s.dts_gain}"]

        # B. Surround track from the same source
        self._add_map(maps, "a", 1, stream.index)
        if codec == "ac3":
            args += ["-c:a:1", "copy"]
        else:
            args += [
                "-c:a:1", "ac3",
                "-b:a:1", s.surround_bitrate,
                "-ac:a:1", str(s.surround_channels),
            ]
        return args

    def _subtitle_args(self) -> List[str]:
        return ["-c:s:0", self.settings.subtitle_codec]
