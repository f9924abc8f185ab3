"""Fatal errors. Anything raised from here stops the run with exit code 1."""

from typing import Dict, List


class VsiteError(Exception):
    """Base class for errors reported to the user without a traceback."""


class RootDirectoryError(VsiteError):
    pass


class NoVideosFoundError(VsiteError):
    def __init__(self, root):
        super().__init__(f"no videos found in directory '{root}'")
        self.root = root


class EncoderNotFoundError(VsiteError):
    def __init__(self, binary: str = "ffmpeg"):
        super().__init__(
            f"{binary} not found. Install with:\n"
            "  Debian/Ubuntu: sudo apt install ffmpeg\n"
            "  Fedora/RHEL:   sudo dnf install ffmpeg"
        )
        self.binary = binary


class GpuUnavailableError(VsiteError):
    pass


class RenderError(VsiteError):
    pass


class NameCollisionError(VsiteError):
    """Two different source paths flatten to the same output file name."""

    def __init__(self, collisions: Dict[str, List[str]]):
        self.collisions = collisions
        lines = [f"{len(collisions)} generated file name(s) would be overwritten:"]
        for name, sources in sorted(collisions.items()):
            shown = ", ".join(repr(s) for s in sources)
            lines.append(f"  {name} <- {shown}")
        lines.append("Rename one of the clashing files or folders and run again.")
        super().__init__("\n".join(lines))
