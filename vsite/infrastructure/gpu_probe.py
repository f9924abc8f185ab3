import shutil
import subprocess
import logging
from typing import List
from vsite.domain.errors import GpuUnavailableError
from vsite.infrastructure.ffmpeg import FFmpegAdapter

DRIVER_HELP = (
    "Requirements for --gpu:\n"
    "  1. NVIDIA driver installed (nvidia-smi must work)\n"
    "  2. ffmpeg with NVENC support\n\n"
    "Driver installation:\n"
    "  Debian/Ubuntu: sudo apt install nvidia-driver-535\n"
    "  Fedora/RHEL:   sudo dnf install akmod-nvidia"
)

ENCODER_HELP = (
    "ffmpeg needs to be compiled with NVENC support.\n\n"
    "Installation:\n"
    "  Debian/Ubuntu: sudo apt install ffmpeg\n"
    "  Fedora/RHEL:   sudo dnf install ffmpeg --allowerasing\n\n"
    "If the problem persists, you may need to install ffmpeg\n"
    "from a repository that includes NVENC support (e.g., RPM Fusion)."
)


def parse_gpu_names(output: str) -> List[str]:
    """`nvidia-smi --query-gpu=name --format=csv,noheader` prints one device per line."""
    return [line.strip() for line in output.splitlines() if line.strip()]


class GpuProbe:
    """Checks that hardware encoding can work before any file is touched.

    Both checks are fatal; there is no silent fallback to the CPU profile.
    """

    def __init__(self, ffmpeg: FFmpegAdapter, query_tool: str = "nvidia-smi"):
        self.ffmpeg = ffmpeg
        self.query_tool = query_tool
        self.logger = logging.getLogger(__name__)

    def detect_devices(self) -> List[str]:
        if shutil.which(self.query_tool) is None:
            raise GpuUnavailableError(f"NVIDIA GPU not detected ({self.query_tool} not found).\n\n{DRIVER_HELP}")

        try:
            result = subprocess.run(
                [self.query_tool, "--query-gpu=name", "--format=csv,noheader"],
                capture_output=True,
                text=True,
                check=True
            )
        except (subprocess.CalledProcessError, OSError) as e:
            raise GpuUnavailableError(
                f"Error querying NVIDIA GPU: {e}\n\nCheck if driver is installed correctly."
            ) from e

        names = parse_gpu_names(result.stdout)
        if not names:
            raise GpuUnavailableError(f"No NVIDIA GPU found.\n\n{DRIVER_HELP}")
        return names

    def check_encoder(self, encoder: str):
        try:
            encoders = self.ffmpeg.list_encoders()
        except (subprocess.CalledProcessError, OSError) as e:
            raise GpuUnavailableError(f"Error checking ffmpeg encoders: {e}") from e

        if encoder not in encoders:
            raise GpuUnavailableError(f"ffmpeg does not have {encoder} support.\n\n{ENCODER_HELP}")

    def check(self, encoder: str) -> str:
        """Runs both checks; returns the first device name for reporting."""
        names = self.detect_devices()
        self.logger.info(f"GPU detected: {', '.join(names)}")
        self.check_encoder(encoder)
        return names[0]
