import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from vsite.config.models import AppConfig
from vsite.domain.errors import NameCollisionError, NoVideosFoundError, RenderError
from vsite.domain.events import DiscoveryFinished, GenerationFinished
from vsite.domain.models import Catalog, GenerationResult
from vsite.infrastructure.event_bus import EventBus
from vsite.infrastructure.file_scanner import FileScanner
from vsite.infrastructure.path_namer import STYLESHEET, PathNamer, find_collisions
from vsite.pipeline.hierarchy import Hierarchy
from vsite.render import pages


class GalleryGenerator:
    """Scan -> hierarchy -> render -> write, all output flat in the root directory.

    Every page is rendered in memory and every output name is checked for
    collisions before the first file is written.
    """

    def __init__(
        self,
        config: AppConfig,
        event_bus: EventBus,
        file_scanner: FileScanner,
        namer: Optional[PathNamer] = None,
    ):
        self.config = config
        self.event_bus = event_bus
        self.file_scanner = file_scanner
        self.namer = namer or file_scanner.namer
        self.logger = logging.getLogger(__name__)

    def scan(self, root_dir: Path) -> Catalog:
        catalog = self.file_scanner.scan(root_dir)
        self.logger.info(f"DISCOVERY: {len(catalog)} videos in {len(catalog.by_directory)} directories")
        self.event_bus.publish(DiscoveryFinished(
            root=root_dir,
            videos_found=len(catalog),
            directories=len(catalog.by_directory),
        ))
        if not catalog.videos:
            raise NoVideosFoundError(root_dir)
        return catalog

    @staticmethod
    def output_claims(hierarchy: Hierarchy) -> List[Tuple[str, str]]:
        """(output file name, source) for everything a run writes."""
        claims = [(STYLESHEET, "<stylesheet>")]
        for node in hierarchy.directories():
            claims.append((node.listing_name, f"{node.path}/" if node.path else "./"))
        for page in hierarchy.player_pages():
            claims.append((page.video.player_page, page.video.relative_path))
        return claims

    def render(self, hierarchy: Hierarchy) -> Dict[str, str]:
        collisions = find_collisions(self.output_claims(hierarchy))
        if collisions:
            raise NameCollisionError(collisions)

        documents: Dict[str, str] = {}
        try:
            for node in hierarchy.directories():
                documents[node.listing_name] = pages.render_index(node)
            for page in hierarchy.player_pages():
                documents[page.video.player_page] = pages.render_player(page)
            documents[STYLESHEET] = pages.stylesheet()
        except (OSError, ValueError, KeyError) as e:
            raise RenderError(f"error rendering pages: {e}") from e
        return documents

    def generate(self, root_dir: Path, title: Optional[str] = None) -> GenerationResult:
        catalog = self.scan(root_dir)
        hierarchy = Hierarchy.build(catalog, title=title or self.config.general.title, namer=self.namer)
        documents = self.render(hierarchy)

        for name, content in documents.items():
            (root_dir / name).write_text(content, encoding="utf-8")
            self.logger.debug(f"WROTE: {name}")

        result = GenerationResult(
            output_dir=root_dir,
            video_count=len(catalog),
            directory_count=len(hierarchy.directories()),
            written=list(documents),
        )
        self.logger.info(f"GENERATED: {len(documents)} files in {root_dir}")
        self.event_bus.publish(GenerationFinished(output_dir=root_dir, pages_written=len(documents)))
        return result
