"""Directory tree and per-video navigation derived from a scan catalog.

Every directory holding a video gets a listing page, and so does each of its
ancestors up to the root, even when they hold no videos themselves. Nodes are
created parents-first so each child registers itself with an existing parent;
subdirectory entries and videos are sorted once, after the tree is complete.
"""

from typing import Dict, Iterator, List, Optional, Set
from vsite.domain.models import Catalog, DirEntry, DirectoryNode, PlayerPage
from vsite.infrastructure.path_namer import PathNamer, split_relative

DEFAULT_TITLE = "Videos"


def parent_of(path: str) -> Optional[str]:
    """'a/b/c' -> 'a/b', 'a' -> '', '' -> None."""
    if path == "":
        return None
    return path.rpartition("/")[0]


def ancestors(path: str) -> Iterator[str]:
    """Yields path itself and every ancestor, ending with the root ''."""
    current: Optional[str] = path
    while current is not None:
        yield current
        current = parent_of(current)


class Hierarchy:
    def __init__(self, nodes: Dict[str, DirectoryNode], player_pages: List[PlayerPage]):
        self._nodes = nodes
        self._player_pages = player_pages

    @classmethod
    def build(cls, catalog: Catalog, title: str = DEFAULT_TITLE, namer: Optional[PathNamer] = None) -> "Hierarchy":
        namer = namer or PathNamer()

        required: Set[str] = {""}
        for directory in catalog.by_directory:
            required.update(ancestors(directory))

        nodes: Dict[str, DirectoryNode] = {}
        # Shallower paths first, so parents always exist before their children
        for path in sorted(required, key=lambda p: (len(split_relative(p)), p)):
            parent = parent_of(path)
            segments = split_relative(path)
            node = DirectoryNode(
                path=path,
                title=segments[-1] if segments else title,
                listing_name=namer.listing_name(path),
                parent_link=nodes[parent].listing_name if parent is not None else None,
                videos=sorted(catalog.by_directory.get(path, ()), key=lambda v: v.name),
            )
            nodes[path] = node
            if parent is not None:
                nodes[parent].subdirectories.append(DirEntry(name=segments[-1], link=node.listing_name))

        for node in nodes.values():
            node.subdirectories.sort(key=lambda entry: entry.name)

        player_pages: List[PlayerPage] = []
        for node in nodes.values():
            player_pages.extend(cls._navigation(node))

        return cls(nodes, player_pages)

    @staticmethod
    def _navigation(node: DirectoryNode) -> Iterator[PlayerPage]:
        """Prev/next within one directory's sorted videos, no wraparound."""
        videos = node.videos
        for index, video in enumerate(videos):
            yield PlayerPage(
                video=video,
                back_link=node.listing_name,
                previous_page=videos[index - 1].player_page if index > 0 else None,
                next_page=videos[index + 1].player_page if index + 1 < len(videos) else None,
            )

    def directories(self) -> List[DirectoryNode]:
        """All nodes, root first, parents before children."""
        return list(self._nodes.values())

    def player_pages(self) -> List[PlayerPage]:
        return list(self._player_pages)

