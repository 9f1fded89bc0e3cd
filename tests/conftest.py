import json
import pytest


def make_probe(streams, filename="/media/movie.mkv", duration="5400.250000"):
    fmt = {"filename": filename, "format_name": "matroska,webm"}
    if duration is not None:
        fmt["duration"] = duration
    return json.dumps({"streams": streams, "format": fmt})


def video(codec="h264", width=1920, height=1080, index=0):
    return {"index": index, "codec_type": "video", "codec_name": codec, "width": width, "height": height}


def audio(codec="ac3", channels=6, language=None, title=None, index=1):
    tags = {}
    if language is not None:
        tags["language"] = language
    if title is not None:
        tags["title"] = title
    return {"index": index, "codec_type": "audio", "codec_name": codec, "channels": channels, "tags": tags}


def subtitle(codec="subrip", language="eng", forced=0, hearing_impaired=0, title=None, index=2):
    tags = {"language": language}
    if title is not None:
        tags["title"] = title
    return {
        "index": index, "codec_type": "subtitle", "codec_name": codec, "tags": tags,
        "disposition": {"default": 0, "forced": forced, "hearing_impaired": hearing_impaired},
    }


@pytest.fixture
def probe():
    return make_probe
