"""Progress metrics aggregation.

Collects the snapshots of one ffmpeg job and reduces them to a summary
once the job is over.
"""

from dataclasses import dataclass, field
from datetime import timedelta

from ffmpeg_cli.progress import Progress


@dataclass
class ProgressSummary:
    """Summary of aggregated ffmpeg progress.

    Attributes:
        avg_fps: Average encoding frames per second.
        peak_fps: Peak encoding frames per second.
        avg_speed: Average speed relative to real time.
        total_frames: Last reported frame count.
        total_size: Last reported output size in bytes.
        out_time: Last reported output position.
        dup_frames: Last reported duplicated frame count.
        drop_frames: Last reported dropped frame count.
        sample_count: Number of snapshots with a usable fps.
        completed: True if a snapshot with status END was seen.
    """

    avg_fps: float | None = None
    peak_fps: float | None = None
    avg_speed: float | None = None
    total_frames: int | None = None
    total_size: int | None = None
    out_time: timedelta | None = None
    dup_frames: int | None = None
    drop_frames: int | None = None
    sample_count: int = 0
    completed: bool = False


@dataclass
class ProgressMetricsAggregator:
    """Collects and aggregates progress snapshots during encoding.

    Usage:
        aggregator = ProgressMetricsAggregator()
        async for item in job.progress:
            aggregator.add_sample(item)
        summary = aggregator.summarize()
    """

    fps_samples: list[float] = field(default_factory=list)
    speed_samples: list[float] = field(default_factory=list)
    last: Progress | None = None
    completed: bool = False

    def add_sample(self, progress: Progress) -> None:
        """Add a snapshot to the aggregator.

        fps and speed of 0 are skipped; ffmpeg reports them while starting up.
        """
        if progress.fps is not None and progress.fps > 0:
            self.fps_samples.append(progress.fps)
        if progress.speed is not None and progress.speed > 0:
            self.speed_samples.append(progress.speed)
        self.last = progress
        if progress.is_end:
            self.completed = True

    def summarize(self) -> ProgressSummary:
        """Compute aggregate metrics from collected samples."""
        summary = ProgressSummary(
            sample_count=len(self.fps_samples),
            completed=self.completed,
        )

        if self.fps_samples:
            summary.avg_fps = sum(self.fps_samples) / len(self.fps_samples)
            summary.peak_fps = max(self.fps_samples)
        if self.speed_samples:
            summary.avg_speed = sum(self.speed_samples) / len(self.speed_samples)

        if self.last is not None:
            summary.total_frames = self.last.frame
            summary.total_size = self.last.total_size
            summary.out_time = self.last.out_time
            summary.dup_frames = self.last.dup_frames
            summary.drop_frames = self.last.drop_frames

        return summary

    def reset(self) -> None:
        """Clear all collected samples."""
        self.fps_samples.clear()
        self.speed_samples.clear()
        self.last = None
        self.completed = False
