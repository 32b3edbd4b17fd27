# backend/services/live_feed.py
"""
Polling subscription for the live dashboard.

A LiveFeedSubscription runs a fetch function on a background thread every
`interval` seconds, inside an application context, and hands each result
to a callback. cancel() stops it promptly; the interval can be changed
while it runs and is clamped to the configured bounds.
"""
import logging
import threading

from services.aggregation import live_snapshot

logger = logging.getLogger(__name__)


def clamp_interval(interval, config):
    """Keep a polling interval within LIVE_FEED_MIN_INTERVAL..LIVE_FEED_MAX_INTERVAL."""
    minimum = config.get('LIVE_FEED_MIN_INTERVAL', 5)
    maximum = config.get('LIVE_FEED_MAX_INTERVAL', 60)
    if interval is None:
        interval = config.get('LIVE_FEED_DEFAULT_INTERVAL', 15)
    return max(minimum, min(maximum, int(interval)))


class LiveFeedSubscription:

    def __init__(self, app, callback, interval=None, fetch=live_snapshot):
        self.app = app
        self.callback = callback
        self.fetch = fetch
        self.interval = clamp_interval(interval, app.config)
        self._cancelled = threading.Event()
        self._wakeup = threading.Event()
        self._thread = None

    @property
    def is_running(self):
        return self._thread is not None and self._thread.is_alive()

    def set_interval(self, interval):
        self.interval = clamp_interval(interval, self.app.config)
        self._wakeup.set()
        logger.info(f"Live feed interval set to {self.interval}s")

    def poll_once(self):
        """Run one fetch and deliver it. Errors are logged, not raised."""
        with self.app.app_context():
            try:
                result = self.fetch()
            except Exception as e:
                logger.error(f"Live feed fetch failed: {e}", exc_info=True)
                return None
        self.callback(result)
        return result

    def _run(self):
        while not self._cancelled.is_set():
            self._wakeup.clear()
            try:
                self.poll_once()
            except Exception as e:
                logger.error(f"Live feed callback failed: {e}", exc_info=True)
            # Returns early on cancel() or set_interval()
            self._wakeup.wait(self.interval)

    def start(self):
        if self.is_running:
            return self
        self._cancelled.clear()
        self._thread = threading.Thread(target=self._run, name='live-feed', daemon=True)
        self._thread.start()
        logger.info(f"Live feed started with interval {self.interval}s")
        return self

    def cancel(self, timeout=None):
        self._cancelled.set()
        self._wakeup.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        self._thread = None
        logger.info("Live feed cancelled")
