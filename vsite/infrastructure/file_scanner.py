import logging
import os
from collections import defaultdict
from pathlib import Path
from typing import Dict, Generator, Iterable, List, Optional
from vsite.config.models import GeneralConfig
from vsite.domain.models import Catalog, Video
from vsite.infrastructure.path_namer import PathNamer

logger = logging.getLogger(__name__)


def _raise_walk_error(error: OSError):
    raise error


class FileScanner:
    """Recursively scans for video files in a directory.

    Hidden directories (name starts with '.') are skipped with their subtree.
    A file needing conversion is left out when a sibling with the same base
    name and the native extension exists; that sibling is listed instead.
    Walk and stat errors propagate: a partial scan would produce broken links.
    """

    def __init__(
        self,
        video_extensions: Iterable[str],
        conversion_extensions: Iterable[str],
        native_extension: str = ".mp4",
        namer: Optional[PathNamer] = None,
    ):
        self.video_extensions = [(ext if ext.startswith(".") else f".{ext}").lower() for ext in video_extensions]
        self.conversion_extensions = [(ext if ext.startswith(".") else f".{ext}").lower() for ext in conversion_extensions]
        self.native_extension = native_extension.lower()
        self.namer = namer or PathNamer()

    @classmethod
    def from_config(cls, config: GeneralConfig, namer: Optional[PathNamer] = None) -> "FileScanner":
        return cls(
            video_extensions=config.video_extensions,
            conversion_extensions=config.conversion_extensions,
            native_extension=config.native_extension,
            namer=namer,
        )

    def walk(self, root_dir: Path) -> Generator[Path, None, None]:
        """Yields every file under root_dir, skipping hidden directories."""
        for root, dirs, files in os.walk(str(root_dir), onerror=_raise_walk_error):
            root_path = Path(root)

            # Ensure deterministic traversal: sort directories and files
            dirs[:] = sorted(d for d in dirs if not d.startswith("."))
            files.sort()

            for file_name in files:
                yield root_path / file_name

    def needs_conversion(self, path: Path) -> bool:
        return path.suffix.lower() in self.conversion_extensions

    def native_sibling(self, path: Path) -> Path:
        return path.with_suffix(self.native_extension)

    def has_native_sibling(self, path: Path) -> bool:
        return self.native_sibling(path).exists()

    def temp_output(self, path: Path) -> Path:
        """Where ffmpeg writes while converting path, e.g. clip.mp4.tmp for clip.avi."""
        target = self.native_sibling(path)
        return target.with_name(target.name + ".tmp")

    def pending_conversions(self, root_dir: Path) -> Generator[Path, None, None]:
        """Files that need conversion and have no native sibling yet."""
        for path in self.walk(root_dir):
            if self.needs_conversion(path) and not self.has_native_sibling(path):
                yield path

    def scan(self, root_dir: Path) -> Catalog:
        """Scans the directory and returns the catalog in discovery order."""
        videos: List[Video] = []
        by_directory: Dict[str, List[Video]] = defaultdict(list)

        for file_path in self.walk(root_dir):
            ext = file_path.suffix.lower()
            if ext not in self.video_extensions:
                continue

            if ext in self.conversion_extensions and self.has_native_sibling(file_path):
                logger.debug(f"SKIP_CONVERTED: {file_path} (using {self.native_sibling(file_path).name})")
                continue

            relative_path = file_path.relative_to(root_dir).as_posix()
            directory = relative_path.rpartition("/")[0]

            video = Video(
                name=file_path.stem,
                file_name=file_path.name,
                relative_path=relative_path,
                extension=ext,
                directory=directory,
                player_page=self.namer.player_name(relative_path),
                size_bytes=file_path.stat().st_size,
            )
            videos.append(video)
            by_directory[directory].append(video)

        return Catalog(
            root=root_dir,
            videos=tuple(videos),
            by_directory={d: tuple(v) for d, v in by_directory.items()},
        )
