"""Progress events, sinks, and the bridge from tool output to events."""

from .bridge import FfmpegProgressParser, stream_progress, wait_with_spinner
from .events import Finished, Progress, ProgressEvent, Spinner, Started
from .sinks import ChannelSink, ConsoleSink, ProgressSink, QuietSink, RecordingSink

__all__ = [
    "ChannelSink",
    "ConsoleSink",
    "FfmpegProgressParser",
    "Finished",
    "Progress",
    "ProgressEvent",
    "ProgressSink",
    "QuietSink",
    "RecordingSink",
    "Spinner",
    "Started",
    "stream_progress",
    "wait_with_spinner",
]
