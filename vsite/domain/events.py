"""Domain events for the gallery pipeline.

Events flow through the EventBus so the scanner, converter and generator
never print directly; the console reporter (`ui/reporter.py`) subscribes to
them. See `infrastructure/event_bus.py` for the pub/sub mechanism.
"""

from pathlib import Path
from typing import Optional
from pydantic import BaseModel
from .models import ConversionTask, ConversionSummary


class Event(BaseModel):
    """Base class for all domain events."""

    pass


class DiscoveryFinished(Event):
    """Emitted after a scan builds its catalog."""

    root: Path
    videos_found: int
    directories: int


class ConversionQueued(Event):
    """Emitted once per conversion pass with the number of pending files."""

    total: int
    profile: str
    gpu_name: Optional[str] = None


class TaskEvent(Event):
    """Base class for events related to a single conversion task."""

    task: ConversionTask


class ConversionStarted(TaskEvent):
    index: int
    total: int


class ConversionProgress(TaskEvent):
    """Emitted as ffmpeg reports `time=` progress against the input duration."""

    progress_percent: float


class ConversionCompleted(TaskEvent):
    pass


class ConversionFailed(TaskEvent):
    """Emitted when ffmpeg fails for one file; partial output has been removed."""

    error_message: str


class ConversionInterrupted(TaskEvent):
    """Emitted when Ctrl+C stops ffmpeg; the pass ends without ConversionFinished."""

    pass


class ConversionFinished(Event):
    summary: ConversionSummary


class GenerationFinished(Event):
    output_dir: Path
    pages_written: int


class FileRemoved(Event):
    """Emitted by the cleaner for every deleted file."""

    path: Path
    reason: Optional[str] = None
