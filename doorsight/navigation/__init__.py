"""Guidance synthesis, announcement and scheduling."""

from .guidance import Guidance, GuidanceAdvisor, synthesize_guidance
from .debouncer import AnnouncementDebouncer, Announcement, GuidanceState, is_significant_change
from .tts_output import TTSOutput, SpeechOutput
from .navigation_pipeline import GuidancePipeline, GuidanceSnapshot, CycleResult
from .scheduler import ContinuousScanScheduler, ScanState

__all__ = [
    "Guidance",
    "GuidanceAdvisor",
    "synthesize_guidance",
    "AnnouncementDebouncer",
    "Announcement",
    "GuidanceState",
    "is_significant_change",
    "TTSOutput",
    "SpeechOutput",
    "GuidancePipeline",
    "GuidanceSnapshot",
    "CycleResult",
    "ContinuousScanScheduler",
    "ScanState",
]
