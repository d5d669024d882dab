"""Fixed-step simulation clock: ticks, elapsed seconds, days, time-of-day bands."""

from island_sim.core.config import (
    DAWN_BAND,
    DAY_LENGTH_SECONDS,
    DUSK_BAND,
    FIXED_TIMESTEP,
    LUNAR_CYCLE_DAYS,
    NIGHT_END,
    NIGHT_START,
    START_TIME_OF_DAY,
)


def time_band(time_of_day: float) -> str:
    """Classify a time of day in [0, 1) as night, dawn, dusk or day."""
    if time_of_day < NIGHT_END or time_of_day >= NIGHT_START:
        return "night"
    if DAWN_BAND[0] <= time_of_day < DAWN_BAND[1]:
        return "dawn"
    if DUSK_BAND[0] <= time_of_day < DUSK_BAND[1]:
        return "dusk"
    return "day"


class SimClock:
    """Manages simulation time. Everything derives from the tick count."""

    def __init__(self, dt: float = FIXED_TIMESTEP, start_time_of_day: float = START_TIME_OF_DAY) -> None:
        self.tick: int = 0
        self.dt = dt
        self._start = start_time_of_day

    @property
    def elapsed(self) -> float:
        """Simulated seconds since reset."""
        return self.tick * self.dt

    @property
    def _days(self) -> float:
        return self._start + self.elapsed / DAY_LENGTH_SECONDS

    @property
    def day(self) -> int:
        return int(self._days)

    @property
    def time_of_day(self) -> float:
        return self._days % 1.0

    @property
    def band(self) -> str:
        return time_band(self.time_of_day)

    @property
    def is_night(self) -> bool:
        return self.band == "night"

    @property
    def is_new_moon(self) -> bool:
        return self.day % LUNAR_CYCLE_DAYS == 0

    def advance(self) -> None:
        """Advance the clock by one tick."""
        self.tick += 1
