"""Step timing for debug-mode bootstrap tracing."""

import time


class StartupTimer:
    """Collects timing data for bootstrap steps."""

    def __init__(self):
        self.timings: list[tuple[str, float]] = []
        self.start_time: float = time.perf_counter()
        self._phase_start: float | None = None
        self._phase_name: str | None = None

    def start_phase(self, name: str) -> None:
        self._phase_name = name
        self._phase_start = time.perf_counter()

    def end_phase(self) -> float:
        """End the current phase and return its duration in milliseconds."""
        if self._phase_start is None:
            return 0.0
        elapsed = (time.perf_counter() - self._phase_start) * 1000
        self.timings.append((self._phase_name, elapsed))
        self._phase_name = None
        self._phase_start = None
        return elapsed

    @property
    def total_ms(self) -> float:
        return (time.perf_counter() - self.start_time) * 1000

    def summary_lines(self) -> list[str]:
        """Render the timing table, one line per step."""
        if not self.timings:
            return []

        total_time = self.total_ms
        lines = [f"{'Step':<20} {'Time (ms)':>10} {'%':>6}"]
        for name, elapsed in self.timings:
            pct = (elapsed / total_time) * 100 if total_time > 0 else 0
            lines.append(f"{name:<20} {elapsed:>10.1f} {pct:>5.1f}%")
        lines.append(f"{'TOTAL':<20} {total_time:>10.1f}")
        return lines
