import logging
import queue
import threading

logger = logging.getLogger("ridguard.actuator")


class AlertActuator:
    """Receives exactly one trigger() per fired alert."""

    def trigger(self) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass


class SilentActuator(AlertActuator):
    """Counts triggers without making any sound (headless runs)."""

    def __init__(self) -> None:
        self.count = 0

    def trigger(self) -> None:
        self.count += 1
        logger.info("ALERT (silent actuator, #%d)", self.count)


class SpeechActuator(AlertActuator):
    """
    Spoken callout through pyttsx3, run on a dedicated worker thread so the
    ingest path never waits on the speech engine.
    """

    def __init__(self, phrase: str = "Drone nearby, drone nearby", rate: int = 180) -> None:
        self.phrase = phrase
        self.rate = rate
        self._queue: "queue.Queue[str | None]" = queue.Queue()
        self._thread = threading.Thread(target=self._worker, name="tts", daemon=True)
        self._thread.start()

    def _worker(self) -> None:
        try:
            import pyttsx3
            engine = pyttsx3.init()
            engine.setProperty("rate", self.rate)
            engine.setProperty("volume", 1.0)
        except Exception as exc:
            logger.warning("Speech engine unavailable, alerts will be logged only: %s", exc)
            engine = None

        while True:
            text = self._queue.get()
            if text is None:
                break
            if engine is None:
                logger.warning("ALERT: %s", text)
            else:
                engine.say(text)
                engine.runAndWait()
            self._queue.task_done()

    def trigger(self) -> None:
        self._queue.put(self.phrase)

    def close(self) -> None:
        self._queue.put(None)
