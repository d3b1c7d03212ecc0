"""File system watcher that converts media dropped into the input directory."""

import time
import logging
from pathlib import Path
from typing import Optional
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler, FileCreatedEvent

from .core.errors import ConfigurationError, VoxpressError
from .core.models import ConfigContext
from .file_manager import FileManager
from .pipeline.assemble import derive_output_name
from .pipeline.base import ConversionPipeline

logger = logging.getLogger("Voxpress.Watcher")

class MediaFileHandler(FileSystemEventHandler):
    """Handles file system events for media files."""

    def __init__(self, config: ConfigContext, pipeline: ConversionPipeline, output_dir: Path):
        self.config = config
        self.pipeline = pipeline
        self.output_dir = output_dir
        self.processing_files = set()

    def on_created(self, event: FileCreatedEvent):
        """Handle file creation events."""
        if event.is_directory:
            return
        self.process(Path(event.src_path).resolve())

    def process(self, filepath: Path) -> Optional[Path]:
        """Convert one file into the output directory. Returns the written path on success."""
        if not FileManager.is_supported(filepath):
            return None

        # Avoid duplicate processing
        if filepath in self.processing_files:
            logger.debug(f"Already processing {filepath.name}, skipping")
            return None

        self.processing_files.add(filepath)

        try:
            if not FileManager.wait_for_file(filepath):
                logger.warning(f"File {filepath.name} disappeared or never stabilized before processing")
                return None

            logger.info(f"New file detected: {filepath.name}")
            try:
                target = self.output_dir / derive_output_name(filepath.name, self.config.audio.media_type)
                if target.resolve() == filepath.resolve():
                    raise ConfigurationError(f"Output {target} would overwrite the source file")
                source = FileManager.load(filepath, self.config.limits.max_file_size_bytes)
                result = self.pipeline.run(source)
            except VoxpressError as e:
                # Source stays in the input directory for inspection
                logger.error(f"Conversion failed for {filepath.name}: {e}")
                return None

            target = result.save(self.output_dir)
            logger.info(f"Wrote {target}")

            try:
                filepath.unlink()
                logger.info(f"Removed {filepath.name} from input directory")
            except OSError as e:
                logger.error(f"Failed to remove {filepath.name} from input: {e}")
            return target

        finally:
            self.processing_files.discard(filepath)


class FileWatcher:
    """Watches input directory for new media files."""

    def __init__(self, config: ConfigContext, pipeline: Optional[ConversionPipeline] = None):
        self.config = config
        self.input_dir = Path(config.paths.input)
        self.output_dir = Path(config.paths.output)
        self.pipeline = pipeline or ConversionPipeline(config.audio)

    def start(self):
        """Start watching the input directory."""
        self.input_dir.mkdir(parents=True, exist_ok=True)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        event_handler = MediaFileHandler(
            config=self.config,
            pipeline=self.pipeline,
            output_dir=self.output_dir
        )

        observer = Observer()
        observer.schedule(event_handler, str(self.input_dir), recursive=False)
        observer.start()

        logger.info(f"Watching for files in: {self.input_dir}")
        logger.info(f"Output directory: {self.output_dir}")
        logger.info("Press Ctrl+C to stop.")

        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            observer.stop()
            logger.info("Stopping file watcher...")

        observer.join()
