"""
reflow_lib/progress.py: Forwards progress messages to an optional host callback.
"""
import logging

log_api = logging.getLogger("reflow.api")


class ProgressReporter:
    """
    Wraps a `callback(message, percent=None)` supplied by the host.

    Percentages are clamped to [0, 100] and never go backwards. A callback
    that raises is logged and otherwise ignored so reporting cannot break
    extraction.
    """

    def __init__(self, callback=None):
        self.callback = callback
        self.last_percent = 0

    def __call__(self, message, percent=None):
        if percent is not None:
            percent = max(self.last_percent, min(100, max(0, int(percent))))
            self.last_percent = percent
        log_api.debug("Progress %s%%: %s", percent if percent is not None else "-", message)
        if self.callback is None:
            return
        try:
            self.callback(message, percent)
        except Exception as e:
            log_api.warning("Progress callback raised %s: %s", type(e).__name__, e)
