"""Maps nested source paths onto flat output file names in the root directory.

Relative paths are '/'-separated strings with '' for the root. Names are
built by joining path segments with '_' and dropping every character that is
not an ASCII letter, digit, '_' or '-' (spaces become '_'). Dropping is lossy,
so callers must run `find_collisions` over everything they intend to write.
"""

import os
from collections import defaultdict
from typing import Dict, Iterable, List, Sequence, Tuple

ROOT_INDEX = "index.html"
STYLESHEET = "style.css"
LISTING_SUFFIX = "_index.html"
PLAYER_PREFIX = "player_"

# Glob patterns matching every file the generator can write
GENERATED_PATTERNS = (ROOT_INDEX, STYLESHEET, f"*{LISTING_SUFFIX}", f"{PLAYER_PREFIX}*.html")


def sanitize_file_name(name: str) -> str:
    """Keeps ASCII letters, digits, '_' and '-'; spaces become '_'; everything else is dropped."""
    result = []
    for ch in name:
        if ch.isascii() and (ch.isalnum() or ch in "_-"):
            result.append(ch)
        elif ch == " ":
            result.append("_")
    return "".join(result)


def split_relative(path: str) -> List[str]:
    return [part for part in path.split("/") if part]


class PathNamer:
    """Deterministic relative path -> flat file name mapping."""

    def flatten(self, segments: Sequence[str], strip_extension: bool = False) -> str:
        joined = "_".join(segments)
        if strip_extension:
            joined = os.path.splitext(joined)[0]
        return sanitize_file_name(joined)

    def listing_name(self, directory: str) -> str:
        """Listing page for a directory; the root is always index.html."""
        segments = split_relative(directory)
        if not segments:
            return ROOT_INDEX
        return self.flatten(segments) + LISTING_SUFFIX

    def player_name(self, relative_path: str) -> str:
        return PLAYER_PREFIX + self.flatten(split_relative(relative_path), strip_extension=True) + ".html"


def find_collisions(assignments: Iterable[Tuple[str, str]]) -> Dict[str, List[str]]:
    """Returns {output name: [sources]} for every name claimed by more than one distinct source."""
    claims: Dict[str, List[str]] = defaultdict(list)
    for name, source in assignments:
        if source not in claims[name]:
            claims[name].append(source)
    return {name: sources for name, sources in claims.items() if len(sources) > 1}
