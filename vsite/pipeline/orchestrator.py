"""Conversion pass: transcode every non-native video that has no native sibling yet.

Tasks run one at a time in discovery order. A failing file is reported,
its partial output removed, and the batch moves on; only missing tools
(ffmpeg, or the GPU checks in GPU mode) abort the pass, and they do so
before any file is touched. Re-running after success finds no work because
task selection skips sources whose native sibling exists.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional
from vsite.config.models import AppConfig
from vsite.domain.events import ConversionCompleted, ConversionFinished, ConversionQueued, ConversionStarted
from vsite.domain.models import ConversionSummary, ConversionTask, JobStatus
from vsite.infrastructure.event_bus import EventBus
from vsite.infrastructure.ffmpeg import FFmpegAdapter
from vsite.infrastructure.file_scanner import FileScanner
from vsite.infrastructure.gpu_probe import GpuProbe
from vsite.infrastructure.housekeeping import HousekeepingService


class ConversionOrchestrator:
    """Runs the conversion pass.

    Args:
        config: AppConfig with the conversion profiles.
        event_bus: EventBus for publishing per-task events.
        file_scanner: FileScanner providing traversal and sibling predicates.
        ffmpeg_adapter: FFmpegAdapter executing one conversion.
        gpu_probe: GpuProbe used only when the GPU profile is requested.
        housekeeper: HousekeepingService removing stale temp outputs first.
    """

    def __init__(
        self,
        config: AppConfig,
        event_bus: EventBus,
        file_scanner: FileScanner,
        ffmpeg_adapter: FFmpegAdapter,
        gpu_probe: Optional[GpuProbe] = None,
        housekeeper: Optional[HousekeepingService] = None,
    ):
        self.config = config
        self.event_bus = event_bus
        self.file_scanner = file_scanner
        self.ffmpeg_adapter = ffmpeg_adapter
        self.gpu_probe = gpu_probe or GpuProbe(ffmpeg_adapter, query_tool=config.conversion.gpu_query_tool)
        self.housekeeper = housekeeper or HousekeepingService(file_scanner, event_bus)
        self.logger = logging.getLogger(__name__)

    def plan(self, root_dir: Path, use_gpu: bool = False) -> List[ConversionTask]:
        """One task per target; when clip.avi and clip.mkv both exist only the first found converts."""
        profile = self.config.conversion.profile(use_gpu)
        tasks: Dict[Path, ConversionTask] = {}
        for source in self.file_scanner.pending_conversions(root_dir):
            target = self.file_scanner.native_sibling(source)
            if target in tasks:
                self.logger.debug(f"SKIP_DUPLICATE_TARGET: {source} ({target.name} comes from {tasks[target].source_path.name})")
                continue
            tasks[target] = ConversionTask(source_path=source, target_path=target, profile=profile.name)
        return list(tasks.values())

    def run(self, root_dir: Path, use_gpu: bool = False) -> ConversionSummary:
        profile = self.config.conversion.profile(use_gpu)

        # Preconditions are fatal and checked before any work
        self.ffmpeg_adapter.ensure_available()
        gpu_name = None
        if use_gpu:
            gpu_name = self.gpu_probe.check(profile.video_codec)

        stale = self.housekeeper.cleanup_temp_files(root_dir)
        if stale:
            self.logger.info(f"Removed {stale} stale temp file(s) from an interrupted run")

        tasks = self.plan(root_dir, use_gpu)
        summary = ConversionSummary(tasks=tasks)
        self.logger.info(f"CONVERSION: {len(tasks)} file(s) to convert (profile={profile.name})")
        self.event_bus.publish(ConversionQueued(total=len(tasks), profile=profile.name, gpu_name=gpu_name))

        for index, task in enumerate(tasks, start=1):
            self.event_bus.publish(ConversionStarted(task=task, index=index, total=len(tasks)))
            self.ffmpeg_adapter.convert(task, profile)
            if task.status == JobStatus.COMPLETED:
                self.event_bus.publish(ConversionCompleted(task=task))

        self.logger.info(f"CONVERSION_END: completed={summary.completed} failed={summary.failed}")
        self.event_bus.publish(ConversionFinished(summary=summary))
        return summary
