from typing import Optional, Sequence
from models.media_info import MediaInfo, Selection, AudioStream, SubtitleStream, VideoStream
from logger import setup_logger

logger = setup_logger()

# Best first
AUDIO_CODEC_PRIORITY = ("dts", "ac3", "alac", "flac", "aac", "mp3")


class StreamSelector:
    def __init__(self, language: str = "eng"):
        self.language = language

    def select(self, info: MediaInfo) -> Selection:
        """
        Narrows a MediaInfo down to at most one video, audio and subtitle stream.
        """
        selection = Selection(
            filename=info.filename,
            duration=info.duration,
            video=self.select_video(info.video_streams),
            audio=self.select_audio(info.audio_streams),
            subtitle=self.select_subtitle(info.subtitle_streams),
        )
        logger.debug(f"Selected for {info.filename}: "
                     f"video={self._describe(selection.video)} "
                     f"audio={self._describe(selection.audio)} "
                     f"subtitle={self._describe(selection.subtitle)}")
        return selection

    def select_video(self, streams: Sequence[VideoStream]) -> Optional[VideoStream]:
        return streams[0] if streams else None

    def select_audio(self, streams: Sequence[AudioStream]) -> Optional[AudioStream]:
        if not streams:
            return None

        preferred = [s for s in streams if s.language == self.language]
        if not preferred:
            return streams[0]

        for codec in AUDIO_CODEC_PRIORITY:
            match = next((s for s in preferred if s.codec.lower() == codec), None)
            if match:
                return match
        return preferred[0]

    def select_subtitle(self, streams: Sequence[SubtitleStream]) -> Optional[SubtitleStream]:
        # Forced tracks usually come first and the full dialogue track last
        preferred = [s for s in streams if s.language == self.language]
        return preferred[-1] if preferred else None

    @staticmethod
    def _describe(stream) -> str:
        if stream is None:
            return "none"
        return f"#{stream.index}:{stream.codec}"
