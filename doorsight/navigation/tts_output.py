"""Text-to-speech output using the platform speech command."""

import shutil
import subprocess
import sys
import threading
from typing import List, Optional, Protocol

from doorsight.utils.logger import get_logger

logger = get_logger(__name__)


class SpeechOutput(Protocol):
    """Fire-and-forget speech sink."""

    def speak(self, message: str, flush: bool = True) -> bool:
        ...


def find_speech_command() -> Optional[str]:
    """
    Locate a speech command: 'say' on macOS, espeak-ng/espeak/spd-say elsewhere.

    Returns:
        Command name, or None if nothing is installed.
    """
    candidates = ["say"] if sys.platform == "darwin" else ["espeak-ng", "espeak", "spd-say"]
    for name in candidates:
        if shutil.which(name) is not None:
            return name
    return None


class TTSOutput:
    """
    Speaks instructions with a system TTS command.

    Each message runs in its own subprocess. A flushing speak stops whatever
    is currently being said first, so the newest instruction is heard
    immediately.
    """

    def __init__(
        self,
        voice: Optional[str] = None,
        rate: int = 160,
        enabled: bool = True,
        command: Optional[str] = None
    ):
        """
        Initialize TTS output.

        Args:
            voice: Voice name passed to the command (e.g., "Samantha", "en-us").
            rate: Speech rate in words per minute.
            enabled: Whether TTS is enabled.
            command: Speech command to use. Auto-detected if None.
        """
        self.voice = voice
        self.rate = rate
        self.command = command or find_speech_command()
        self.enabled = enabled and self.command is not None

        self._last_message = ""
        self._current_process: Optional[subprocess.Popen] = None
        self._lock = threading.Lock()

        if self.enabled:
            logger.info(f"TTS initialized (command={self.command}, voice={voice}, rate={rate})")
        elif enabled:
            logger.warning("No speech command found (install espeak-ng), TTS disabled")
        else:
            logger.info("TTS disabled")

    @property
    def last_message(self) -> str:
        return self._last_message

    def speak(self, message: str, flush: bool = True) -> bool:
        """
        Speak a message.

        Args:
            message: Text to speak.
            flush: Stop current speech before speaking.

        Returns:
            True if the message was handed to the speech command.
        """
        if not self.enabled or not message:
            return False

        # Pipeline announcements and scan confirmations come from different threads
        with self._lock:
            if flush:
                self._stop_current()

            if not self._speak_async(message):
                return False

            self._last_message = message
        return True

    def _build_command(self, message: str) -> List[str]:
        if self.command == "say":
            cmd = ["say", "-r", str(self.rate)]
            if self.voice:
                cmd += ["-v", self.voice]
        elif self.command == "spd-say":
            # spd-say takes a relative rate in [-100, 100]
            relative = max(-100, min(100, int((self.rate - 175) / 2)))
            cmd = ["spd-say", "-r", str(relative)]
            if self.voice:
                cmd += ["-l", self.voice]
        else:
            cmd = [self.command, "-s", str(self.rate)]
            if self.voice:
                cmd += ["-v", self.voice]
        return cmd + [message]

    def _speak_async(self, message: str) -> bool:
        """
        Start the speech command without waiting for it.

        Args:
            message: Text to speak.

        Returns:
            True if the process started.
        """
        try:
            self._current_process = subprocess.Popen(
                self._build_command(message),
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL
            )
            logger.debug(f"TTS: {message}")
            return True
        except FileNotFoundError:
            logger.warning(f"'{self.command}' command not found, TTS disabled")
            self.enabled = False
        except OSError as e:
            logger.error(f"TTS error: {e}")
        return False

    def _stop_current(self) -> None:
        """Stop any currently speaking message. Caller holds the lock."""
        process = self._current_process
        if process is None:
            return
        if process.poll() is None:
            try:
                process.terminate()
                process.wait(timeout=0.1)
            except subprocess.TimeoutExpired:
                process.kill()
            except OSError as e:
                logger.debug(f"Could not stop speech process: {e}")
        self._current_process = None

    def is_speaking(self) -> bool:
        """
        Check if currently speaking.

        Returns:
            True if speech is in progress.
        """
        process = self._current_process
        if process is None:
            return False
        return process.poll() is None

    def wait_for_completion(self, timeout: float = 5.0) -> bool:
        """
        Wait for current speech to complete.

        Args:
            timeout: Maximum time to wait in seconds.

        Returns:
            True if completed, False if timed out.
        """
        process = self._current_process
        if process is None:
            return True

        try:
            process.wait(timeout=timeout)
            return True
        except subprocess.TimeoutExpired:
            return False

    def close(self) -> None:
        """Clean up resources."""
        with self._lock:
            self._stop_current()
