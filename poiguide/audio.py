"""Audio/Text-to-speech module for poiguide."""

import asyncio
import subprocess
import threading
from typing import Optional, Callable, Protocol

from .config import CONFIG


class SpeechEngine(Protocol):
    def speak(self, text: str, locale: str) -> None:
        ...

    def cancel(self) -> None:
        ...


class Audio:
    """Interruptible text-to-speech.

    speak() returns immediately; at most one utterance plays at a time and a
    new speak() does not wait for the previous one. Listeners passed to the
    constructor are told when an utterance starts, finishes, fails or is
    cancelled. When `loop` is set, listeners always run on that loop, even
    when the utterance ends on a worker thread.
    """

    callback: Optional[Callable[[str], None]] = None  # Class-level callback for the live display

    def __init__(self, on_start: Optional[Callable[[str], None]] = None,
                 on_finish: Optional[Callable[[str], None]] = None,
                 on_cancel: Optional[Callable[[str], None]] = None,
                 on_error: Optional[Callable[[str, str], None]] = None,
                 enabled: bool = True,
                 loop: Optional[asyncio.AbstractEventLoop] = None):
        self.on_start = on_start
        self.on_finish = on_finish
        self.on_cancel = on_cancel
        self.on_error = on_error
        self.enabled = enabled
        self.loop = loop
        self._lock = threading.Lock()
        self._process: Optional[subprocess.Popen] = None
        self._tts = None  # pyttsx3 engine, created on first fallback
        self._current: Optional[str] = None
        self._generation = 0

    @classmethod
    def set_callback(cls, callback: Optional[Callable[[str], None]]):
        """Set callback function for audio events"""
        cls.callback = callback

    @property
    def is_speaking(self) -> bool:
        return self._current is not None

    def _notify(self, listener: Optional[Callable], *args):
        if listener is None:
            return
        loop = self.loop
        if loop is None or loop.is_closed():
            listener(*args)
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            listener(*args)
            return
        try:
            loop.call_soon_threadsafe(listener, *args)
        except RuntimeError:
            # Loop closed between the check and the call
            listener(*args)

    def speak(self, text: str, locale: Optional[str] = None):
        """Start speaking text in the background"""
        # Send to callback if set (for live display)
        if Audio.callback:
            Audio.callback(text)

        with self._lock:
            self._generation += 1
            generation = self._generation
            self._current = text

        self._notify(self.on_start, text)

        if not self.enabled:
            print(f"[AUDIO] {text}")
            self._finished(generation, text)
            return

        voice = _espeak_voice(locale)
        try:
            process = subprocess.Popen(
                ["espeak", "-v", voice, "-s", str(CONFIG["espeak_speed"]), text],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except FileNotFoundError:
            # Fallback: pyttsx3 in a worker thread
            threading.Thread(
                target=self._speak_pyttsx3, args=(text, locale, generation), daemon=True
            ).start()
            return

        with self._lock:
            self._process = process
        threading.Thread(
            target=self._wait_espeak, args=(process, text, generation), daemon=True
        ).start()

    def _wait_espeak(self, process: subprocess.Popen, text: str, generation: int):
        returncode = process.wait()
        if returncode == 0:
            self._finished(generation, text)
        else:
            # A cancelled utterance has already moved to a new generation
            self._failed(generation, text, f"espeak exited with code {returncode}")

    def _speak_pyttsx3(self, text: str, locale: Optional[str], generation: int):
        try:
            import pyttsx3
            if self._tts is None:
                self._tts = pyttsx3.init()
                self._tts.setProperty("rate", CONFIG["espeak_speed"])
                _select_voice(self._tts, locale)
            self._tts.say(text)
            self._tts.runAndWait()
        except Exception as e:
            print(f"[AUDIO] {text}")
            self._failed(generation, text, repr(e))
            return
        self._finished(generation, text)

    def _end(self, generation: int) -> bool:
        with self._lock:
            if generation != self._generation:
                return False  # superseded or cancelled
            self._current = None
            self._process = None
        return True

    def _finished(self, generation: int, text: str):
        if self._end(generation):
            self._notify(self.on_finish, text)

    def _failed(self, generation: int, text: str, error: str):
        if not self._end(generation):
            return
        if self.on_error:
            self._notify(self.on_error, text, error)
        else:
            print(f"Audio error: {error}")

    def cancel(self):
        """Stop the current utterance immediately, if any"""
        with self._lock:
            text = self._current
            process = self._process
            self._generation += 1
            self._current = None
            self._process = None

        if process and process.poll() is None:
            process.terminate()
        if self._tts is not None:
            try:
                self._tts.stop()
            except Exception as e:
                print(f"Audio error: {e}")

        if text is not None:
            self._notify(self.on_cancel, text)


def _espeak_voice(locale: Optional[str]) -> str:
    if not locale:
        return CONFIG["espeak_voice"]
    return locale.split("-")[0].lower()


def _select_voice(engine, locale: Optional[str]):
    """Pick the first installed pyttsx3 voice matching the locale's language"""
    lang = _espeak_voice(locale)
    for voice in engine.getProperty("voices"):
        languages = [str(l).lower() for l in getattr(voice, "languages", [])]
        if any(lang in l for l in languages) or lang in str(voice.id).lower():
            engine.setProperty("voice", voice.id)
            return
