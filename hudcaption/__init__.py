# hudcaption/__init__.py
from .TranscriptProcessor import TranscriptProcessor, wrap_text
from .TranscriptDisplayController import TranscriptDisplayController
from .RecognitionResultPublisher import RecognitionResultPublisher
from .Scheduler import AsyncioScheduler, ThreadingScheduler
from .types import RecognitionResult

__all__ = [
    'TranscriptProcessor',
    'wrap_text',
    'TranscriptDisplayController',
    'RecognitionResultPublisher',
    'AsyncioScheduler',
    'ThreadingScheduler',
    'RecognitionResult'
]
