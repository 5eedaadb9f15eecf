"""Lightweight terminal progress reporting."""

from __future__ import annotations

import math
import sys
import time

SECONDS_PER_HOUR = 3600.0
ETA_EWMA_ALPHA = 0.1
ETA_MIN_SAMPLES = 3


class ProgressReporter:
    """Terminal progress bar over simulated time with ETA feedback."""

    def __init__(
        self,
        total_time_s: float,
        *,
        refresh_seconds: float = 1.0,
        enabled: bool = False,
        stream=None,
    ) -> None:
        self.total_time_s = max(float(total_time_s), 0.0)
        self.enabled = bool(enabled and self.total_time_s > 0.0)
        self.refresh_seconds = max(float(refresh_seconds), 0.1)
        self.stream = stream if stream is not None else sys.stdout
        self.start = time.monotonic()
        self.last = self.start - self.refresh_seconds
        self._finished = False
        isatty = getattr(self.stream, "isatty", None)
        self._isatty = bool(isatty()) if callable(isatty) else False
        # wall seconds per simulated second
        self._rate_ewma: float | None = None
        self._rate_samples = 0
        self._last_wall: float | None = None
        self._last_sim: float | None = None

    def update(self, sim_elapsed_s: float, *, force: bool = False) -> None:
        """Render the bar when ``refresh_seconds`` have passed or when forced."""

        if not self.enabled or self._finished:
            return
        now = time.monotonic()
        self._update_rate(sim_elapsed_s, now)
        is_last = sim_elapsed_s >= self.total_time_s
        if not force and not is_last and (now - self.last) < self.refresh_seconds:
            return
        self.last = now
        frac = min(max(sim_elapsed_s / self.total_time_s, 0.0), 1.0)
        bar_width = 28
        filled = int(bar_width * frac)
        bar = "#" * filled + "-" * (bar_width - filled)
        sim_hours = sim_elapsed_s / SECONDS_PER_HOUR
        eta_seconds = float("nan")
        if self._rate_ewma is not None and self._rate_samples >= ETA_MIN_SAMPLES:
            eta_seconds = self._rate_ewma * max(self.total_time_s - sim_elapsed_s, 0.0)

        line = f"[{bar}] {frac * 100:5.1f}% t={sim_hours:.3g} h {_format_eta(eta_seconds)}"
        if self._isatty:
            self.stream.write(f"\r\033[2K{line}")
            if is_last or force:
                self.stream.write("\n")
        else:
            self.stream.write(f"{line}\n")
        if is_last:
            self._finished = True
        self.stream.flush()

    def finish(self, sim_elapsed_s: float) -> None:
        """Force a final render to end the line cleanly."""

        if not self.enabled or self._finished:
            return
        self.update(sim_elapsed_s, force=True)
        self._finished = True

    def _update_rate(self, sim_elapsed_s: float, now: float) -> None:
        if self._last_wall is not None and self._last_sim is not None:
            sim_delta = sim_elapsed_s - self._last_sim
            if sim_delta > 0.0:
                rate = (now - self._last_wall) / sim_delta
                if math.isfinite(rate) and rate >= 0.0:
                    if self._rate_ewma is None:
                        self._rate_ewma = rate
                    else:
                        self._rate_ewma = ETA_EWMA_ALPHA * rate + (1.0 - ETA_EWMA_ALPHA) * self._rate_ewma
                    self._rate_samples += 1
        self._last_wall = now
        self._last_sim = sim_elapsed_s


def _format_eta(seconds: float) -> str:
    if not math.isfinite(seconds) or seconds < 0.0:
        return "ETA ?"
    if seconds >= 3600.0:
        return f"ETA {seconds/3600.0:.1f}h"
    if seconds >= 60.0:
        return f"ETA {seconds/60.0:.1f}m"
    return f"ETA {seconds:.0f}s"
