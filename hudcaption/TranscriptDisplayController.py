import logging
from typing import Any, Callable, Dict, Optional

from hudcaption.protocols import DisplaySink, Scheduler
from hudcaption.TranscriptProcessor import TranscriptProcessor
from hudcaption.types import RecognitionResult

logger = logging.getLogger(__name__)


class TranscriptDisplayController:
    """Feeds recognition fragments through a TranscriptProcessor into a display sink.

    Implements TextRecognitionSubscriber, so it can be subscribed to a
    RecognitionResultPublisher. Immediate blocks returned by the processor are
    sent right away; throttled blocks are pulled from the processor when its
    pending-update callback fires and sent then.

    Sink failures are logged and swallowed so that a broken display does not
    stop transcript processing.

    Args:
        sink: Display or transport accepting ready-to-render text
        config: Application config dict passed to the processor
        scheduler: Timer facility for the processor's throttle
        processor_factory: Builds the processor from (callback, config, scheduler);
            TranscriptProcessor by default
        verbose: Log every block sent to the sink
    """

    def __init__(
        self,
        sink: DisplaySink,
        config: Optional[Dict[str, Any]] = None,
        scheduler: Optional[Scheduler] = None,
        processor_factory: Optional[Callable[..., TranscriptProcessor]] = None,
        verbose: bool = False,
    ) -> None:
        self.sink: DisplaySink = sink
        self.verbose: bool = verbose
        factory = processor_factory or TranscriptProcessor
        self.processor: TranscriptProcessor = factory(
            send_pending_callback=self._send_pending_transcript,
            config=config,
            scheduler=scheduler,
        )

    def on_partial_update(self, result: RecognitionResult) -> None:
        self.handle_result(result)

    def on_finalization(self, result: RecognitionResult) -> None:
        self.handle_result(result)

    def handle_result(self, result: RecognitionResult) -> Optional[str]:
        """Apply the fragment's language, process it and send any immediate block.

        Returns:
            The block sent to the sink, or None if the update was throttled
        """
        if result.language:
            self.processor.change_language(result.language)

        processed_text = self.processor.process(result.text, result.is_final)
        if processed_text is not None:
            self._send(processed_text)
        return processed_text

    def clear(self, blank_display: bool = False) -> None:
        """Reset the processor; optionally blank the display.

        Args:
            blank_display: Send max_lines empty lines to the sink after resetting
        """
        self.processor.clear()
        if blank_display:
            self._send("\n".join([""] * self.processor.get_max_lines()))

    def _send_pending_transcript(self) -> None:
        pending_text = self.processor.get_pending_update()
        if pending_text is not None:
            self._send(pending_text)

    def _send(self, text: str) -> None:
        if self.verbose:
            logger.debug("TranscriptDisplayController: sending %r", text)
        try:
            self.sink.show_text(text)
        except Exception:
            logger.exception("TranscriptDisplayController: display sink failed")
