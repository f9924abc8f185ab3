import logging
from pathlib import Path
from typing import Dict, List, Optional
from vsite.domain.events import FileRemoved
from vsite.infrastructure.event_bus import EventBus
from vsite.infrastructure.file_scanner import FileScanner
from vsite.infrastructure.path_namer import GENERATED_PATTERNS

logger = logging.getLogger(__name__)

class HousekeepingService:
    """Removes generated pages, converted copies, originals and stale temp files.

    Pairing decisions go through the same FileScanner predicates the scan
    uses, so cleaning always matches what generation would have listed.
    Removal failures propagate, except for stale temp files.
    """

    def __init__(self, file_scanner: FileScanner, event_bus: Optional[EventBus] = None):
        self.file_scanner = file_scanner
        self.event_bus = event_bus

    def _remove(self, path: Path, reason: Optional[str] = None) -> Path:
        path.unlink()
        logger.info(f"REMOVED: {path}" + (f" ({reason})" if reason else ""))
        if self.event_bus:
            self.event_bus.publish(FileRemoved(path=path, reason=reason))
        return path

    def remove_generated(self, root_dir: Path) -> List[Path]:
        """Deletes generated pages and the stylesheet directly in root_dir (not recursive)."""
        # player_index.html matches two patterns
        matches = {
            match
            for pattern in GENERATED_PATTERNS
            for match in root_dir.glob(pattern)
            if match.is_file()
        }
        return [self._remove(match) for match in sorted(matches)]

    def remove_converted(self, root_dir: Path) -> List[Path]:
        """Deletes native files that have an original sibling, keeping the original.

        A native file counts only when it is exactly what the scan would pair
        with an original, so clip.MP4 next to clip.mkv is left alone.
        """
        targets: Dict[Path, Path] = {}
        for path in self.file_scanner.walk(root_dir):
            if self.file_scanner.needs_conversion(path) and self.file_scanner.has_native_sibling(path):
                # clip.avi and clip.mkv both pair with clip.mp4
                targets.setdefault(self.file_scanner.native_sibling(path), path)

        return [self._remove(native, f"original: {original.name}") for native, original in targets.items()]

    def remove_originals(self, root_dir: Path) -> List[Path]:
        """Deletes originals that have a native sibling, keeping the converted file."""
        targets = [
            path for path in self.file_scanner.walk(root_dir)
            if self.file_scanner.needs_conversion(path) and self.file_scanner.has_native_sibling(path)
        ]
        return [
            self._remove(path, f"converted: {self.file_scanner.native_sibling(path).name}")
            for path in targets
        ]

    def cleanup_temp_files(self, directory: Path) -> int:
        """Recursively removes conversion outputs left behind by an interrupted run.

        Only `<stem>.mp4.tmp` files sitting next to an original that converts
        to `<stem>.mp4` are touched.
        """
        count = 0
        for path in self.file_scanner.walk(directory):
            if not self.file_scanner.needs_conversion(path):
                continue
            temp = self.file_scanner.temp_output(path)
            if not temp.is_file():
                continue
            try:
                temp.unlink()
                count += 1
                logger.info(f"STALE_TMP_REMOVED: {temp}")
            except OSError as e:
                logger.warning(f"Could not remove stale temp file {temp}: {e}")
        return count
