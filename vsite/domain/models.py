from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field

class JobStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    INTERRUPTED = "INTERRUPTED"  # Ctrl+C during conversion

class Video(BaseModel):
    """A discovered playable file. Paths use '/' separators, root directory is ''."""
    model_config = ConfigDict(frozen=True)

    name: str
    file_name: str
    relative_path: str
    extension: str
    directory: str
    player_page: str
    size_bytes: int = 0

class Catalog(BaseModel):
    """Result of one scan: videos in discovery order plus the per-directory grouping."""
    model_config = ConfigDict(frozen=True)

    root: Path
    videos: Tuple[Video, ...] = ()
    by_directory: Dict[str, Tuple[Video, ...]] = Field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.videos)

class DirEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    link: str

class DirectoryNode(BaseModel):
    path: str
    title: str
    listing_name: str
    parent_link: Optional[str] = None
    subdirectories: List[DirEntry] = Field(default_factory=list)
    videos: List[Video] = Field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return self.path == ""

class PlayerPage(BaseModel):
    model_config = ConfigDict(frozen=True)

    video: Video
    back_link: str
    previous_page: Optional[str] = None
    next_page: Optional[str] = None

class ConversionTask(BaseModel):
    source_path: Path
    target_path: Path
    profile: str
    status: JobStatus = JobStatus.PENDING
    error_message: Optional[str] = None
    duration_seconds: Optional[float] = None
    progress_percent: float = 0.0

    @property
    def temp_path(self) -> Path:
        return self.target_path.with_name(self.target_path.name + ".tmp")

class ConversionSummary(BaseModel):
    tasks: List[ConversionTask] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.tasks)

    @property
    def completed(self) -> int:
        return sum(1 for t in self.tasks if t.status == JobStatus.COMPLETED)

    @property
    def failed(self) -> int:
        return sum(1 for t in self.tasks if t.status == JobStatus.FAILED)

class GenerationResult(BaseModel):
    output_dir: Path
    video_count: int
    directory_count: int
    written: List[str] = Field(default_factory=list)
