import subprocess
import shutil
import re
import logging
import time
from collections import deque
from typing import List
from vsite.domain.models import ConversionTask, JobStatus
from vsite.domain.errors import EncoderNotFoundError
from vsite.config.models import EncoderProfile
from vsite.infrastructure.event_bus import EventBus
from vsite.domain.events import ConversionProgress, ConversionFailed, ConversionInterrupted

# Output is written to a .tmp file, so the container has to be named explicitly
_MUXERS = {".mp4": "mp4", ".m4v": "mp4", ".mov": "mov", ".webm": "webm", ".ogv": "ogg"}

_DURATION_RE = re.compile(r"Duration:\s*(\d+):(\d+):(\d+(?:\.\d+)?)")
_TIME_RE = re.compile(r"time=(\d+):(\d+):(\d+\.\d+)")


def _seconds(match: "re.Match[str]") -> float:
    h, m, s = map(float, match.groups())
    return h * 3600 + m * 60 + s


class FFmpegAdapter:
    """Wrapper around ffmpeg for converting videos to the native container."""

    def __init__(self, event_bus: EventBus, ffmpeg_path: str = "ffmpeg"):
        self.event_bus = event_bus
        self.ffmpeg_path = ffmpeg_path
        self.logger = logging.getLogger(__name__)

    def ensure_available(self) -> str:
        """Returns the resolved binary path or raises EncoderNotFoundError."""
        resolved = shutil.which(self.ffmpeg_path)
        if resolved is None:
            raise EncoderNotFoundError(self.ffmpeg_path)
        return resolved

    def list_encoders(self) -> str:
        result = subprocess.run(
            [self.ffmpeg_path, "-hide_banner", "-encoders"],
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout

    def _build_command(self, task: ConversionTask, profile: EncoderProfile) -> List[str]:
        """Constructs the ffmpeg command line arguments."""
        cmd = [
            self.ffmpeg_path,
            "-hide_banner",
            "-nostdin",
            "-y",  # Overwrite a stale .tmp
        ]
        cmd.extend(profile.input_args)
        cmd.extend(["-i", str(task.source_path)])

        cmd.extend([
            "-c:v", profile.video_codec,
            "-preset", profile.preset,
            profile.quality_flag, str(profile.quality),
            "-c:a", profile.audio_codec,
            "-b:a", profile.audio_bitrate,
        ])
        if profile.faststart:
            cmd.extend(["-movflags", "+faststart"])

        muxer = _MUXERS.get(task.target_path.suffix.lower(), "mp4")
        cmd.extend(["-f", muxer, str(task.temp_path)])
        return cmd

    def _discard_partial(self, task: ConversionTask):
        if task.temp_path.exists():
            task.temp_path.unlink()
            self.logger.debug(f"FFMPEG_CLEANUP: removed partial output {task.temp_path}")

    def convert(self, task: ConversionTask, profile: EncoderProfile):
        """Runs one conversion synchronously and records the outcome on the task."""
        filename = task.source_path.name
        start_time = time.monotonic()
        cmd = self._build_command(task, profile)
        self.logger.info(f"FFMPEG_START: {filename} (profile={profile.name})")
        self.logger.debug(f"FFMPEG_CMD: {' '.join(cmd)}")

        task.status = JobStatus.PROCESSING
        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                universal_newlines=True,
                bufsize=1
            )
        except OSError as e:
            self._fail(task, f"could not start {self.ffmpeg_path}: {e}", start_time)
            return

        total_duration = 0.0
        tail: "deque[str]" = deque(maxlen=5)
        try:
            # universal_newlines turns ffmpeg's '\r' progress updates into separate lines
            for line in process.stdout or []:
                line = line.strip()
                if not line:
                    continue
                tail.append(line)

                if not total_duration:
                    match = _DURATION_RE.search(line)
                    if match:
                        total_duration = _seconds(match)
                        continue

                match = _TIME_RE.search(line)
                if match and total_duration > 0:
                    task.progress_percent = min(100.0, _seconds(match) / total_duration * 100.0)
                    self.event_bus.publish(ConversionProgress(task=task, progress_percent=task.progress_percent))

            process.wait()
        except KeyboardInterrupt:
            self.logger.info(f"FFMPEG_INTERRUPTED: {filename} (KeyboardInterrupt)")
            process.terminate()
            try:
                process.wait(timeout=3)
            except subprocess.TimeoutExpired:
                process.kill()
                process.wait()
            self._discard_partial(task)
            task.status = JobStatus.INTERRUPTED
            task.error_message = "Interrupted by user (Ctrl+C)"
            self.event_bus.publish(ConversionInterrupted(task=task))
            raise

        if process.returncode != 0:
            detail = f": {tail[-1]}" if tail else ""
            self._fail(task, f"ffmpeg exited with code {process.returncode}{detail}", start_time)
            return

        if not task.temp_path.exists():
            self._fail(task, "ffmpeg reported success but wrote no output", start_time)
            return

        task.temp_path.replace(task.target_path)
        task.status = JobStatus.COMPLETED
        task.progress_percent = 100.0
        task.duration_seconds = time.monotonic() - start_time
        self.logger.info(f"FFMPEG_END: {filename} status=completed elapsed={task.duration_seconds:.2f}s")

    def _fail(self, task: ConversionTask, message: str, start_time: float):
        self._discard_partial(task)
        task.status = JobStatus.FAILED
        task.error_message = message
        task.duration_seconds = time.monotonic() - start_time
        self.logger.warning(f"FFMPEG_FAILED: {task.source_path} ({message})")
        self.event_bus.publish(ConversionFailed(task=task, error_message=message))
