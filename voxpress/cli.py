import argparse
import sys
import logging
from pathlib import Path
from typing import Optional, List

from .core.config import load_config
from .core.console import console
from .core.errors import ConfigurationError, FileTooLargeError, VoxpressError
from .core.models import ConfigContext
from .file_manager import FileManager
from .pipeline.assemble import derive_output_name
from .pipeline.base import ConversionPipeline
from .utils import format_bytes, format_duration, setup_logging

# Logger will be initialized after config is loaded
logger = logging.getLogger("Voxpress.CLI")

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="voxpress", description="Voxpress - extract speech-ready MP3 audio from media files.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging.")
    parser.add_argument("-c", "--config", help="Path to config.yaml")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    convert_parser = subparsers.add_parser("convert", help="Convert a media file to 16 kHz mono MP3")
    convert_parser.add_argument("file", help="Input audio or video file")
    convert_parser.add_argument("-o", "--output-dir", help="Directory for the MP3 (default: next to the input)")
    convert_parser.add_argument("--bitrate", type=int, help="MP3 bitrate in kbps (default: 64)")
    convert_parser.add_argument("--pad-tail", action="store_true", help="Zero-pad and encode the final partial block instead of dropping it")

    probe_parser = subparsers.add_parser("probe", help="Show media facts from ffprobe")
    probe_parser.add_argument("file", help="Input audio or video file")

    subparsers.add_parser("watch", help="Watch input directory and convert new files")
    return parser

def _overrides(args: argparse.Namespace) -> dict:
    audio = {}
    if getattr(args, "bitrate", None):
        audio["bitrate_kbps"] = args.bitrate
    if getattr(args, "pad_tail", False):
        audio["pad_tail"] = True
    return {"audio": audio} if audio else {}

def _input_file(path_arg: str) -> Optional[Path]:
    file_path = Path(path_arg)
    if not file_path.exists():
        logger.error(f"File not found: {file_path}")
        return None
    if not FileManager.is_supported(file_path):
        logger.warning(f"Unrecognized extension {file_path.suffix}; trying anyway.")
    return file_path

def cmd_convert(args: argparse.Namespace, config: ConfigContext) -> int:
    file_path = _input_file(args.file)
    if file_path is None:
        return 1

    output_dir = Path(args.output_dir) if args.output_dir else file_path.parent
    target = output_dir / derive_output_name(file_path.name, config.audio.media_type)
    if target.resolve() == file_path.resolve():
        raise ConfigurationError(f"Output {target} would overwrite the source file; choose another directory with -o.")

    source = FileManager.load(file_path, config.limits.max_file_size_bytes)
    pipeline = ConversionPipeline(config.audio)

    logger.info(f"Converting {file_path.name} ({format_bytes(source.size)})...")
    with console.progress(f"Converting {file_path.name}") as on_progress:
        result = pipeline.run(source, on_progress)

    target = result.save(output_dir)
    stats = pipeline.stats
    console.success(f"Conversion complete: {target}")
    console.print(f"Original: {format_bytes(stats.input_bytes)} → MP3: {format_bytes(stats.output_bytes)} "
                  f"in {stats.elapsed_seconds:.1f}s")
    if stats.dropped_samples:
        logger.debug(f"Trailing {stats.dropped_samples} samples were not encoded")
    return 0

def cmd_probe(args: argparse.Namespace, config: ConfigContext) -> int:
    from .backends.ffmpeg import FfmpegDecoder

    file_path = _input_file(args.file)
    if file_path is None:
        return 1

    with console.status(f"Probing {file_path.name}..."):
        info = FfmpegDecoder().probe(file_path)
    console.print(f"File:        {file_path.name}")
    console.print(f"Format:      {info.format}")
    console.print(f"Duration:    {format_duration(info.duration_seconds)}")
    console.print(f"Size:        {format_bytes(info.file_size_bytes or 0)}")
    console.print(f"Bitrate:     {(info.bitrate or 0) // 1000} kbps")
    if info.sample_rate:
        console.print(f"Audio:       {info.channels} ch @ {info.sample_rate} Hz")
    else:
        console.warning("No audio track found.")
    return 0

def cmd_watch(args: argparse.Namespace, config: ConfigContext) -> int:
    from .watcher import FileWatcher
    FileWatcher(config).start()
    return 0

COMMANDS = {
    "convert": cmd_convert,
    "probe": cmd_probe,
    "watch": cmd_watch,
}

def main(argv: Optional[List[str]] = None) -> int:
    global logger

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        config = load_config(args.config, overrides=_overrides(args))
    except ConfigurationError as e:
        console.error_panel(str(e), title="Configuration Error")
        return 1

    debug_mode = args.verbose or config.debug
    console.configure(output_mode=config.output_mode, debug=debug_mode)
    logger = setup_logging(debug=debug_mode, output_mode=config.output_mode).getChild("CLI")

    try:
        return COMMANDS[args.command](args, config)
    except FileTooLargeError as e:
        console.error_panel(str(e), title="File Too Large")
        return 1
    except VoxpressError as e:
        console.error_panel(str(e), title="Conversion Failed")
        return 1
    except Exception as e:
        logger.error(f"An unexpected error occurred: {e}", exc_info=args.verbose)
        return 1

if __name__ == "__main__":
    sys.exit(main())
