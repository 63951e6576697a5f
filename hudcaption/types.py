"""Type definitions for transcript fragments flowing into the caption display."""

from dataclasses import dataclass
from typing import Literal


@dataclass
class RecognitionResult:
    """Speech recognition fragment as delivered by the upstream recognizer.

    Attributes:
        text: Recognized text; may be None when the recognizer sends an empty fragment
        status: 'partial' for interim results that may be superseded, 'final' for confirmed text
        language: Transcription language code (e.g. 'en-US', 'zh-CN'); None keeps the current mode
        timestamp: Recognizer wall-clock time of the fragment in seconds
    """
    text: str | None
    status: Literal['partial', 'final']
    language: str | None = None
    timestamp: float = 0.0

    @property
    def is_final(self) -> bool:
        return self.status == 'final'
