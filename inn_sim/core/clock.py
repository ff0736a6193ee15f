"""Time system for the inn: minutes, hours, days, seasons, years."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from inn_sim.core.config import (
    DAY_START_HOUR,
    DAYS_PER_SEASON,
    DEFAULT_TIME_SCALE,
    HOURS_PER_DAY,
    MINUTES_PER_DAY,
    MINUTES_PER_HOUR,
    NIGHT_START_HOUR,
    SEASONS,
    SEASONS_PER_YEAR,
    STARTING_DAY,
    STARTING_HOUR,
    STARTING_MINUTE,
    STARTING_SEASON,
    STARTING_YEAR,
)
from inn_sim.core.events import DayChanged, EventBus, HourChanged, SeasonChanged
from inn_sim.viz.logger import SimLogger


@dataclass(frozen=True)
class TimeInfo:
    """Everything the UI needs to know about the current moment."""

    minute: float
    hour: int
    day: int
    season: str
    year: int
    is_day_time: bool
    time_string: str
    date_string: str
    is_day_start: bool
    is_night_start: bool
    is_season_start: bool


class GameClock:
    """Manages game time.

    Game time advances by ``delta_seconds * time_scale`` game minutes per
    update. Boundary flags in :meth:`time_info` use ``minute < 1``, so an
    update that jumps more than a minute past the exact hour can miss them.
    """

    def __init__(
        self,
        events: Optional[EventBus] = None,
        logger: Optional[SimLogger] = None,
        days_per_season: int = DAYS_PER_SEASON,
    ) -> None:
        self._events = events
        self._logger = logger or SimLogger.silent()
        self.days_per_season = days_per_season

        self.time_scale: float = DEFAULT_TIME_SCALE
        self.paused: bool = False

        self.minute: float = STARTING_MINUTE
        self.hour: int = STARTING_HOUR
        self.day: int = STARTING_DAY
        self.season: int = STARTING_SEASON
        self.year: int = STARTING_YEAR
        self.is_day_time: bool = True

        self.last_hour: int = self.hour
        self.last_day: int = self.day
        self.last_season: int = self.season

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def set_initial_time(
        self,
        hour: int = STARTING_HOUR,
        day: int = STARTING_DAY,
        season: int = STARTING_SEASON,
        year: int = STARTING_YEAR,
    ) -> None:
        """Set the calendar for a new game."""
        self.minute = 0.0
        self.hour = hour
        self.day = day
        self.season = season
        self.year = year
        self._update_day_night()
        self._reset_tracking()
        self._logger.log(
            SimLogger.TIME,
            f"Initial time set to {self.time_string()} on {self.date_string()}",
        )

    # ------------------------------------------------------------------
    # Advancing
    # ------------------------------------------------------------------

    def update(self, delta_seconds: float) -> float:
        """Advance by real elapsed seconds. Returns elapsed game days."""
        if self.paused:
            return 0.0

        self._reset_tracking()

        minutes = delta_seconds * self.time_scale
        self.advance(minutes)
        self._check_time_events()
        return minutes / MINUTES_PER_DAY

    def advance(self, minutes: float) -> None:
        """Advance the calendar by a number of game minutes."""
        self.minute += minutes

        if self.minute >= MINUTES_PER_HOUR:
            hours_to_add = math.floor(self.minute / MINUTES_PER_HOUR)
            self.minute %= MINUTES_PER_HOUR
            self.hour += hours_to_add

            if self.hour >= HOURS_PER_DAY:
                days_to_add = self.hour // HOURS_PER_DAY
                self.hour %= HOURS_PER_DAY
                self.day += days_to_add

                if self.day > self.days_per_season:
                    # Days are 1-based
                    seasons_to_add = (self.day - 1) // self.days_per_season
                    self.day = (self.day - 1) % self.days_per_season + 1
                    self.season += seasons_to_add

                    if self.season >= SEASONS_PER_YEAR:
                        years_to_add = self.season // SEASONS_PER_YEAR
                        self.season %= SEASONS_PER_YEAR
                        self.year += years_to_add

        self._update_day_night()

    def skip_to_hour(self, target_hour: int) -> None:
        """Jump to the start of an hour, crossing midnight if it lies earlier today."""
        if not 0 <= target_hour < HOURS_PER_DAY:
            return

        if target_hour < self.hour:
            self.day += 1
            if self.day > self.days_per_season:
                self.day = 1
                self.season = (self.season + 1) % SEASONS_PER_YEAR
                if self.season == 0:
                    self.year += 1

        self.hour = target_hour
        self.minute = 0.0
        self._update_day_night()
        self._logger.log(SimLogger.TIME, f"Skipped to {self.time_string()}")

    def set_time_scale(self, scale: float) -> None:
        if scale > 0:
            self.time_scale = scale
            self._logger.log(SimLogger.TIME, f"Time scale set to {scale}x")

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def season_name(self) -> str:
        return SEASONS[self.season]

    def time_string(self) -> str:
        """Clock face, e.g. ``06:05 AM``."""
        hour_display = 12 if self.hour % 12 == 0 else self.hour % 12
        ampm = "AM" if self.hour < 12 else "PM"
        return f"{hour_display:02d}:{int(self.minute):02d} {ampm}"

    def date_string(self) -> str:
        return f"Day {self.day} of {self.season_name}, Year {self.year}"

    def time_info(self) -> TimeInfo:
        return TimeInfo(
            minute=self.minute,
            hour=self.hour,
            day=self.day,
            season=self.season_name,
            year=self.year,
            is_day_time=self.is_day_time,
            time_string=self.time_string(),
            date_string=self.date_string(),
            is_day_start=self.hour == DAY_START_HOUR and self.minute < 1,
            is_night_start=self.hour == NIGHT_START_HOUR and self.minute < 1,
            is_season_start=(
                self.day == 1 and self.hour == DAY_START_HOUR and self.minute < 1
            ),
        )

    def total_days(self) -> int:
        """Whole days elapsed since Day 1 of Spring, Year 1."""
        days_per_year = self.days_per_season * SEASONS_PER_YEAR
        return (
            (self.year - 1) * days_per_year
            + self.season * self.days_per_season
            + (self.day - 1)
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def get_state(self) -> dict:
        return {
            "minute": self.minute,
            "hour": self.hour,
            "day": self.day,
            "season": self.season,
            "year": self.year,
            "time_scale": self.time_scale,
        }

    def load_state(self, state: Optional[dict]) -> None:
        """Replace the calendar; fields missing from ``state`` take their new-game values."""
        if state is None:
            return
        self.minute = state.get("minute", STARTING_MINUTE)
        self.hour = state.get("hour", STARTING_HOUR)
        self.day = state.get("day", STARTING_DAY)
        self.season = state.get("season", STARTING_SEASON)
        self.year = state.get("year", STARTING_YEAR)
        self.time_scale = state.get("time_scale", state.get("timeScale", DEFAULT_TIME_SCALE))

        self._update_day_night()
        self._reset_tracking()
        self._logger.log(
            SimLogger.PERSISTENCE,
            f"Loaded time: {self.time_string()} on {self.date_string()}",
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _update_day_night(self) -> None:
        self.is_day_time = DAY_START_HOUR <= self.hour < NIGHT_START_HOUR

    def _reset_tracking(self) -> None:
        self.last_hour = self.hour
        self.last_day = self.day
        self.last_season = self.season

    def _check_time_events(self) -> None:
        if self._events is None:
            return
        if self.hour != self.last_hour:
            self._events.publish(HourChanged(previous_hour=self.last_hour, hour=self.hour))
        if self.day != self.last_day:
            self._events.publish(
                DayChanged(
                    previous_day=self.last_day,
                    day=self.day,
                    season=self.season,
                    year=self.year,
                )
            )
            self._logger.log(SimLogger.TIME, self.date_string())
        if self.season != self.last_season:
            self._events.publish(
                SeasonChanged(
                    previous_season=self.last_season,
                    season=self.season,
                    season_name=self.season_name,
                    year=self.year,
                )
            )
            self._logger.log(SimLogger.TIME, f"The season has changed to {self.season_name}")
