from typing import Optional
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, TaskID, TextColumn, TimeElapsedColumn
from vsite.infrastructure.event_bus import EventBus
from vsite.domain.events import (
    DiscoveryFinished,
    ConversionQueued, ConversionStarted, ConversionProgress,
    ConversionCompleted, ConversionFailed, ConversionInterrupted, ConversionFinished,
    GenerationFinished, FileRemoved,
)

class ConsoleReporter:
    """Subscribes to EventBus and prints phase counts and per-file status."""

    def __init__(self, bus: EventBus, console: Optional[Console] = None, show_progress: bool = True):
        self.bus = bus
        self.console = console or Console(highlight=False)
        self.show_progress = show_progress and self.console.is_terminal
        self.removed_count = 0
        self._progress: Optional[Progress] = None
        self._progress_task: Optional[TaskID] = None
        self._setup_subscriptions()

    def _setup_subscriptions(self):
        self.bus.subscribe(DiscoveryFinished, self.on_discovery_finished)
        self.bus.subscribe(ConversionQueued, self.on_conversion_queued)
        self.bus.subscribe(ConversionStarted, self.on_conversion_started)
        self.bus.subscribe(ConversionProgress, self.on_conversion_progress)
        self.bus.subscribe(ConversionCompleted, self.on_conversion_completed)
        self.bus.subscribe(ConversionFailed, self.on_conversion_failed)
        self.bus.subscribe(ConversionInterrupted, self.on_conversion_interrupted)
        self.bus.subscribe(ConversionFinished, self.on_conversion_finished)
        self.bus.subscribe(GenerationFinished, self.on_generation_finished)
        self.bus.subscribe(FileRemoved, self.on_file_removed)

    def on_discovery_finished(self, event: DiscoveryFinished):
        self.console.print(f"Found {event.videos_found} videos")

    def on_conversion_queued(self, event: ConversionQueued):
        if event.gpu_name:
            self.console.print(f"GPU detected: {event.gpu_name}, using NVENC for conversion")
        if event.total == 0:
            self.console.print("No videos need conversion.")
        else:
            self.console.print(f"Found {event.total} videos to convert")

    def on_conversion_started(self, event: ConversionStarted):
        self.console.print(f"[{event.index}/{event.total}] Converting: {event.task.source_path.name}", markup=False)
        if not self.show_progress:
            return
        self._stop_progress()
        self._progress = Progress(
            TextColumn("  "),
            BarColumn(bar_width=None),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )
        self._progress.start()
        self._progress_task = self._progress.add_task("convert", total=100.0)

    def on_conversion_progress(self, event: ConversionProgress):
        if self._progress is not None and self._progress_task is not None:
            self._progress.update(self._progress_task, completed=event.progress_percent)

    def on_conversion_completed(self, event: ConversionCompleted):
        self._stop_progress()
        self.console.print(f"  [green]Done:[/green] {escape(event.task.target_path.name)}")

    def on_conversion_failed(self, event: ConversionFailed):
        self._stop_progress()
        self.console.print(
            f"  [yellow]Warning:[/yellow] Error converting {escape(event.task.source_path.name)}: {escape(event.error_message)}"
        )

    def on_conversion_interrupted(self, event: ConversionInterrupted):
        self._stop_progress()
        self.console.print(f"  Interrupted: {event.task.source_path.name} (partial output removed)", markup=False)

    def on_conversion_finished(self, event: ConversionFinished):
        self._stop_progress()
        summary = event.summary
        if summary.total == 0:
            return
        if summary.failed:
            self.console.print(
                f"Conversion completed with errors: {summary.completed} converted, {summary.failed} failed"
            )
        else:
            self.console.print(f"Conversion completed! {summary.completed} converted")

    def on_generation_finished(self, event: GenerationFinished):
        self.console.print(f"Files generated in: {event.output_dir}", markup=False)

    def on_file_removed(self, event: FileRemoved):
        self.removed_count += 1
        detail = f" ({event.reason})" if event.reason else ""
        self.console.print(f"Removed: {event.path.name}{detail}", markup=False)

    def _stop_progress(self):
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
            self._progress_task = None
