import argparse
import logging
import os
import sys
import yaml
from typing import List, Optional
from pydantic import ValidationError
from logger import setup_logger, add_file_handler, redirect_console
from scanner import Scanner
from utils.ffprobe_wrapper import FFprobeWrapper
from selector import StreamSelector
from planner import CommandPlanner
from converter import Converter
from exceptions import ConfigError, ConverterError
from models.media_info import EncoderSettings, MediaInfo, Options

__version__ = "1.0.0"

DEFAULT_CONFIG = "config.yaml"

logger = setup_logger()


def load_config(path: Optional[str] = None) -> EncoderSettings:
    """
    Reads encoder settings from YAML. A missing default config file means built-in defaults.
    """
    if path is None:
        if not os.path.exists(DEFAULT_CONFIG):
            return EncoderSettings()
        path = DEFAULT_CONFIG

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    try:
        return EncoderSettings(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="m4v-convert",
        description="Convert media files to m4v/m4a, picking the best English streams.",
    )
    parser.add_argument("-s", "--sd", action="store_true", help="downscale video to standard definition")
    parser.add_argument("-d", "--dump", action="store_true", help="print the ffmpeg command instead of running it")
    parser.add_argument("-t", "--subtitles", action="store_true", help="include an English subtitle track")
    parser.add_argument("-o", "--output-dir", default=os.curdir, help="where to write output files (default: current directory)")
    parser.add_argument("-c", "--config", default=None, help=f"YAML encoder settings (default: {DEFAULT_CONFIG} if present)")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("files", nargs="+", metavar="FILE", help="media files or directories to convert")
    return parser


def parse_options(args: argparse.Namespace) -> Options:
    return Options(
        sd=args.sd,
        dump=args.dump,
        subtitles=args.subtitles,
        files=tuple(args.files),
        output_dir=args.output_dir,
    )


class ConverterApp:
    def __init__(self, options: Options, settings: Optional[EncoderSettings] = None):
        self.options = options
        self.settings = settings or EncoderSettings()
        self.scanner = Scanner(self.settings.video_extensions + self.settings.audio_extensions)
        self.ffprobe = FFprobeWrapper(self.settings.ffprobe_path)
        self.selector = StreamSelector(self.settings.language)
        self.planner = CommandPlanner(self.settings)
        self.converter = Converter(self.settings, require_ffmpeg=not options.dump)

    def process_file(self, file_path: str):
        # 1. Probe
        info = self.ffprobe.get_media_info(file_path, include_subtitles=self.options.subtitles)
        if not self.options.dump:
            self._log_summary(info)

        # 2. Select and plan
        selection = self.selector.select(info)
        plan = self.planner.plan(selection, self.options)

        # 3. Dump or convert
        if self.options.dump:
            print(self.converter.dump(plan))
            return
        self.converter.run(plan, selection.duration)

    def run(self) -> int:
        failed: List[str] = []
        for file_path in self.scanner.expand(self.options.files):
            try:
                self.process_file(file_path)
            except ConverterError as e:
                logger.error(f"FAILED {file_path}: {e}")
                failed.append(file_path)

        failed.extend(self.scanner.missing)
        if failed:
            logger.error(f"{len(failed)} file(s) failed: {', '.join(failed)}")
            return 1
        return 0

    @staticmethod
    def _log_summary(info: MediaInfo):
        video = ", ".join(f"#{s.index}:{s.codec}({s.width}x{s.height})" for s in info.video_streams) or "none"
        audio = ", ".join(f"#{s.index}:{s.codec}({s.channels}ch)[{s.language}]" for s in info.audio_streams) or "none"
        logger.info(f"Analyzed {info.filename}:\n"
                    f"  Duration: {info.duration}s\n"
                    f"  Video: {video}\n"
                    f"  Audio: {len(info.audio_streams)} streams ({audio})\n"
                    f"  Subtitles: {len(info.subtitle_streams)} streams")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logger.setLevel(logging.DEBUG)

    try:
        settings = load_config(args.config)
    except ConfigError as e:
        logger.critical(str(e))
        return 2

    options = parse_options(args)
    if options.dump:
        # stdout carries only the dumped commands
        redirect_console(sys.stderr)
    else:
        add_file_handler(settings.log_file)

    try:
        app = ConverterApp(options, settings)
    except FileNotFoundError as e:
        logger.critical(str(e))
        return 2

    try:
        return app.run()
    except KeyboardInterrupt:
        logger.warning("Stopped by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
