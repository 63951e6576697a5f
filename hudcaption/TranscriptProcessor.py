import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from hudcaption.Config import DEFAULT_CONFIG, validate_display_config
from hudcaption.protocols import Scheduler
from hudcaption.Scheduler import ThreadingScheduler

logger = logging.getLogger(__name__)


def wrap_text(text: str, max_length: int, wide_glyph: bool = False) -> List[str]:
    """Split text into display lines no longer than max_length characters.

    Normal mode breaks at the last space that keeps the line within max_length
    and falls back to a hard break inside long words. Wide-glyph mode (CJK)
    always hard-breaks at max_length. Lines are stripped and empty lines dropped.

    Args:
        text: Text to wrap
        max_length: Maximum characters per line
        wide_glyph: Use fixed-width breaking instead of word boundaries

    Returns:
        List of non-empty lines, oldest text first
    """
    lines: List[str] = []
    remaining = text.strip()

    while remaining:
        if len(remaining) <= max_length:
            lines.append(remaining)
            break

        split_index = max_length
        if not wide_glyph:
            # Only spaces inside the window count, index max_length is excluded
            last_space = remaining.rfind(" ", 0, max_length)
            if last_space > 0:
                split_index = last_space

        chunk = remaining[:split_index].strip()
        if chunk:
            lines.append(chunk)
        remaining = remaining[split_index:].strip()

    return lines


def normalize_line_count(lines: List[str], max_lines: int) -> List[str]:
    """Pad with empty lines at the end or drop leading lines to get exactly max_lines.

    Dropping from the front keeps the most recent text visible.
    """
    if len(lines) > max_lines:
        return lines[len(lines) - max_lines:]
    return lines + [""] * (max_lines - len(lines))


def is_wide_glyph_language(language: Optional[str], wide_glyph_languages: List[str]) -> bool:
    """Check whether a language code selects wide-glyph (fixed-width) layout.

    Only the primary subtag is compared, case-insensitively: 'zh-CN', 'zh_TW'
    and 'ZH' all match 'zh'.
    """
    if not language:
        return False
    primary = language.replace("_", "-").split("-", 1)[0].lower()
    return primary in {code.lower() for code in wide_glyph_languages}


class TranscriptProcessor:
    """Turns a stream of partial/final transcript fragments into display blocks.

    The processor keeps a bounded history of final transcripts plus the current
    partial text and renders both into exactly max_lines lines wrapped to
    max_chars_per_line. Final fragments are rendered and returned immediately.
    Partial fragments are rate limited: when the last partial emission is more
    recent than the throttle interval, the rendered block is parked as the
    single pending update (newer partials overwrite it) and a one-shot timer is
    armed. When the timer fires the send_pending_callback is invoked and the
    owner pulls the block with get_pending_update().

    A pending update that is not pulled before it is overwritten is lost. This
    is intended: only the newest partial text is worth displaying.

    Thread Safety:
        Public methods are intended to be called sequentially by one owner.
        Timer callbacks from ThreadingScheduler arrive on a timer thread, so
        state is guarded by an internal RLock. send_pending_callback is invoked
        outside the lock and may call back into the processor.

    Args:
        send_pending_callback: Zero-argument callable notified when a throttled
            update is ready to be pulled
        config: Application config dict; only the 'display' section is read.
            Defaults apply when omitted.
        scheduler: One-shot timer facility; ThreadingScheduler by default
        clock: Monotonic time source in seconds
        verbose: Log throttle decisions at DEBUG level
    """

    def __init__(
        self,
        send_pending_callback: Optional[Callable[[], None]] = None,
        config: Optional[Dict[str, Any]] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], float] = time.monotonic,
        verbose: bool = False,
    ) -> None:
        display = dict(DEFAULT_CONFIG['display'])
        if config:
            display.update(config.get('display', {}))
        validate_display_config(display)

        self.send_pending_callback: Optional[Callable[[], None]] = send_pending_callback
        self.scheduler: Scheduler = scheduler if scheduler is not None else ThreadingScheduler()
        self.clock: Callable[[], float] = clock
        self.verbose: bool = verbose

        self.default_max_chars_per_line: int = display['max_chars_per_line']
        self.wide_glyph_max_chars_per_line: int = display['wide_glyph_max_chars_per_line']
        self.wide_glyph_languages: List[str] = list(display['wide_glyph_languages'])
        self.max_lines: int = display['max_lines']
        self.max_final_transcripts: int = display['max_history_entries']
        self.throttle_interval: float = display['throttle_interval_ms'] / 1000.0

        self.wide_glyph: bool = is_wide_glyph_language(display.get('default_language'), self.wide_glyph_languages)
        self.max_chars_per_line: int = (
            self.wide_glyph_max_chars_per_line if self.wide_glyph else self.default_max_chars_per_line
        )

        self._lock = threading.RLock()
        self.last_user_transcript: str = ""
        self.partial_text: str = ""
        self.final_transcript_history: List[str] = []
        self.current_display_lines: List[str] = []
        self.last_partial_update_time: Optional[float] = None
        self.pending_update: Optional[str] = None
        self._pending_timer: Any = None
        self._timer_generation: int = 0

    def process(self, text: Optional[str], is_final: bool) -> Optional[str]:
        """Ingest one transcript fragment.

        Args:
            text: Fragment text; None is treated as an empty string
            is_final: True for a confirmed fragment, False for an interim one

        Returns:
            Newline-joined block of exactly max_lines lines, or None when a
            partial update was deferred by the throttle
        """
        text = (text or "").strip()
        with self._lock:
            if is_final:
                return self._process_final(text)
            return self._process_partial(text)

    def _process_partial(self, text: str) -> Optional[str]:
        self.partial_text = text
        self.last_user_transcript = text

        combined_text = self.get_combined_transcript_history() + " " + text
        processed_text = self._render(combined_text)

        now = self.clock()
        if self.last_partial_update_time is not None:
            elapsed = now - self.last_partial_update_time
            if elapsed < self.throttle_interval:
                self.pending_update = processed_text
                if self._pending_timer is None:
                    delay = self.throttle_interval - elapsed
                    self._timer_generation += 1
                    generation = self._timer_generation
                    self._pending_timer = self.scheduler.schedule(
                        delay, lambda: self._on_pending_timer(generation)
                    )
                    if self.verbose:
                        logger.debug(f"TranscriptProcessor: partial deferred, timer armed for {delay * 1000:.0f}ms")
                elif self.verbose:
                    logger.debug("TranscriptProcessor: partial deferred, pending update replaced")
                return None

        self.last_partial_update_time = now
        self._cancel_pending_timer()
        self.pending_update = None
        return processed_text

    def _process_final(self, text: str) -> str:
        self.partial_text = ""
        self._add_to_transcript_history(text)
        return self._render(self.get_combined_transcript_history())

    def _render(self, text: str) -> str:
        lines = wrap_text(text, self.max_chars_per_line, self.wide_glyph)
        self.current_display_lines = normalize_line_count(lines, self.max_lines)
        return "\n".join(self.current_display_lines)

    def _on_pending_timer(self, generation: int) -> None:
        """Timer callback: mark the interval boundary and notify the owner."""
        with self._lock:
            if generation != self._timer_generation or self._pending_timer is None:
                # Cancelled or superseded after the timer already started firing
                return
            self.last_partial_update_time = self.clock()
            self._pending_timer = None
            notify = self.send_pending_callback is not None and self.pending_update is not None

        if notify:
            try:
                self.send_pending_callback()
            except Exception:
                logger.exception("TranscriptProcessor: send_pending_callback failed")

    def _cancel_pending_timer(self) -> None:
        if self._pending_timer is not None:
            self.scheduler.cancel(self._pending_timer)
            self._pending_timer = None
            self._timer_generation += 1

    def _add_to_transcript_history(self, transcript: str) -> None:
        trimmed = transcript.strip()
        if not trimmed:
            return

        self.final_transcript_history.append(trimmed)
        self._trim_history()

    def _trim_history(self) -> None:
        excess = len(self.final_transcript_history) - self.max_final_transcripts
        if excess > 0:
            del self.final_transcript_history[:excess]
            if self.verbose:
                logger.debug(f"TranscriptProcessor: evicted {excess} oldest transcript(s)")

    def has_pending_timer(self) -> bool:
        with self._lock:
            return self._pending_timer is not None

    def get_pending_update(self) -> Optional[str]:
        """Return the throttled block and forget it (one-shot read).

        Returns:
            The pending block, or None when nothing is pending
        """
        with self._lock:
            pending = self.pending_update
            self.pending_update = None
            return pending

    def get_final_transcript_history(self) -> List[str]:
        with self._lock:
            return list(self.final_transcript_history)

    def get_combined_transcript_history(self) -> str:
        with self._lock:
            return " ".join(self.final_transcript_history)

    def get_display_lines(self) -> List[str]:
        with self._lock:
            return list(self.current_display_lines)

    def get_last_user_transcript(self) -> str:
        """Most recent partial text, kept even after a final clears the live partial."""
        with self._lock:
            return self.last_user_transcript

    def set_max_final_transcripts(self, max_final_transcripts: int) -> None:
        """Change the history bound, evicting oldest entries if it shrinks.

        A bound of 0 keeps no history; negative values are treated as 0.
        """
        with self._lock:
            self.max_final_transcripts = max(max_final_transcripts, 0)
            self._trim_history()

    def get_max_final_transcripts(self) -> int:
        with self._lock:
            return self.max_final_transcripts

    def get_max_chars_per_line(self) -> int:
        return self.max_chars_per_line

    def get_max_lines(self) -> int:
        return self.max_lines

    def is_wide_glyph_mode(self) -> bool:
        return self.wide_glyph

    def change_language(self, language: Optional[str]) -> None:
        """Switch line width for the language and reset state when the mode changes.

        Switching between normal and wide-glyph layout discards history, partial
        text and any pending update instead of re-wrapping existing content.
        Changing between two languages of the same mode is a no-op.

        Args:
            language: Language code such as 'en-US' or 'zh-CN'
        """
        wide_glyph = is_wide_glyph_language(language, self.wide_glyph_languages)
        with self._lock:
            if wide_glyph == self.wide_glyph:
                return
            self.wide_glyph = wide_glyph
            self.max_chars_per_line = (
                self.wide_glyph_max_chars_per_line if wide_glyph else self.default_max_chars_per_line
            )
            self.clear()
        logger.info(f"TranscriptProcessor: language '{language}' selected, "
                    f"max_chars_per_line={self.max_chars_per_line}")

    def clear(self) -> None:
        """Reset transcript and throttle state; configuration and language mode are kept."""
        with self._lock:
            self.partial_text = ""
            self.final_transcript_history = []
            self.current_display_lines = []
            self.last_partial_update_time = None
            self._cancel_pending_timer()
            self.pending_update = None
