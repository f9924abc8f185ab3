"""HTML for listing and player pages.

Pure functions from page records to text. Every value taken from the
filesystem goes through `_esc`; video sources are percent-encoded per path
segment so names with spaces, '#' or unicode still resolve.
"""

import html
from pathlib import Path
from urllib.parse import quote

from vsite.domain.models import DirectoryNode, PlayerPage, Video
from vsite.infrastructure.path_namer import STYLESHEET

_STATIC_DIR = Path(__file__).parent / "static"

MIME_TYPES = {
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mkv": "video/x-matroska",
    ".avi": "video/x-msvideo",
    ".mov": "video/quicktime",
    ".m4v": "video/x-m4v",
    ".ogv": "video/ogg",
    ".3gp": "video/3gpp",
}


def _esc(text: object) -> str:
    """HTML-escape a value. Always call this on data from domain models."""
    return html.escape(str(text), quote=True)


def video_src(relative_path: str) -> str:
    return "/".join(quote(part, safe="") for part in relative_path.split("/"))


def _fmt_size(size_bytes: int) -> str:
    """Format bytes to human-readable string: 0B, 1.2KB, 45.1MB, 3.2GB."""
    if not size_bytes:
        return "0B"
    units = ["B", "KB", "MB", "GB", "TB"]
    val = float(size_bytes)
    idx = 0
    while val >= 1024.0 and idx < len(units) - 1:
        val /= 1024.0
        idx += 1
    if idx == 0:
        return f"{int(val)}B"
    return f"{val:.1f}{units[idx]}"


def stylesheet() -> str:
    return (_STATIC_DIR / STYLESHEET).read_text(encoding="utf-8")


def _document(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html>\n"
        "<html lang=\"en\">\n"
        "<head>\n"
        "  <meta charset=\"UTF-8\">\n"
        "  <meta name=\"viewport\" content=\"width=device-width, initial-scale=1.0\">\n"
        f"  <title>{_esc(title)}</title>\n"
        f"  <link rel=\"stylesheet\" href=\"{STYLESHEET}\">\n"
        "</head>\n"
        "<body>\n"
        f"{body}"
        "</body>\n"
        "</html>\n"
    )


def _video_card(video: Video) -> str:
    return (
        f"    <a class=\"video-card\" href=\"{_esc(video.player_page)}\">\n"
        "      <div class=\"thumbnail\">\n"
        f"        <video src=\"{_esc(video_src(video.relative_path))}#t=1\" preload=\"metadata\" muted></video>\n"
        "        <span class=\"play-icon\">&#9654;</span>\n"
        "      </div>\n"
        "      <div class=\"video-info\">\n"
        f"        <span class=\"video-name\">{_esc(video.name)}</span>\n"
        f"        <span class=\"video-meta\">{_esc(video.extension.lstrip('.').upper())} &middot; {_fmt_size(video.size_bytes)}</span>\n"
        "      </div>\n"
        "    </a>\n"
    )


def render_index(node: DirectoryNode) -> str:
    parts = ["<div class=\"container\">\n", "  <header class=\"header\">\n"]
    if not node.is_root:
        parts.append(f"    <a class=\"back-button\" href=\"{_esc(node.parent_link)}\">&larr; Back</a>\n")
    parts.append(f"    <h1>{_esc(node.title)}</h1>\n")
    parts.append("  </header>\n")

    if node.subdirectories:
        parts.append("  <h2 class=\"section-title\">Folders</h2>\n")
        parts.append("  <div class=\"folders-grid\">\n")
        for entry in node.subdirectories:
            parts.append(
                f"    <a class=\"folder-card\" href=\"{_esc(entry.link)}\">"
                f"<span class=\"folder-icon\">&#128193;</span>"
                f"<span class=\"folder-name\">{_esc(entry.name)}</span></a>\n"
            )
        parts.append("  </div>\n")

    if node.videos:
        parts.append(f"  <h2 class=\"section-title\">Videos ({len(node.videos)})</h2>\n")
        parts.append("  <div class=\"videos-grid\">\n")
        parts.extend(_video_card(video) for video in node.videos)
        parts.append("  </div>\n")

    parts.append("</div>\n")
    return _document(node.title, "".join(parts))


def render_player(page: PlayerPage) -> str:
    video = page.video
    mime = MIME_TYPES.get(video.extension, "")
    type_attr = f" type=\"{mime}\"" if mime else ""

    controls = []
    if page.previous_page:
        controls.append(f"    <a class=\"nav-button\" id=\"prev\" href=\"{_esc(page.previous_page)}\">&larr; Previous</a>\n")
    else:
        controls.append("    <span class=\"nav-button disabled\">&larr; Previous</span>\n")
    if page.next_page:
        controls.append(f"    <a class=\"nav-button\" id=\"next\" href=\"{_esc(page.next_page)}\">Next &rarr;</a>\n")
    else:
        controls.append("    <span class=\"nav-button disabled\">Next &rarr;</span>\n")

    body = (
        "<div class=\"container\">\n"
        "  <header class=\"header\">\n"
        f"    <a class=\"back-button\" href=\"{_esc(page.back_link)}\">&larr; Back</a>\n"
        f"    <h1>{_esc(video.name)}</h1>\n"
        "  </header>\n"
        "  <div class=\"player-wrapper\">\n"
        "    <video controls autoplay preload=\"auto\">\n"
        f"      <source src=\"{_esc(video_src(video.relative_path))}\"{type_attr}>\n"
        "      Your browser does not support this video.\n"
        "    </video>\n"
        "  </div>\n"
        "  <div class=\"player-controls\">\n"
        f"{''.join(controls)}"
        f"    <span class=\"file-name\">{_esc(video.file_name)}</span>\n"
        "  </div>\n"
        "</div>\n"
        "<script>\n"
        "document.addEventListener('keydown', function (e) {\n"
        "  if (e.target.tagName === 'INPUT') return;\n"
        "  var id = e.key === 'ArrowLeft' && e.altKey ? 'prev' : e.key === 'ArrowRight' && e.altKey ? 'next' : null;\n"
        "  var link = id && document.getElementById(id);\n"
        "  if (link) window.location.href = link.getAttribute('href');\n"
        "});\n"
        "</script>\n"
    )
    return _document(video.name, body)
