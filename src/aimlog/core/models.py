"""
Session records produced by the stats file parser.

Every record is frozen: a Session is built once from one file and never
mutated afterwards.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class GeneralSettings:
    """Game-wide settings, last section of the file."""

    input_lag: float
    max_fps: float
    sens_scale: str
    horiz_sens: float
    vert_sens: float
    fov: float
    hide_gun: bool
    crosshair: str
    crosshair_scale: float
    crosshair_color: str


@dataclass(frozen=True)
class WeaponSettings:
    """Per-weapon totals and overrides, second section of the file."""

    weapon: str = ""
    shots: int = 0
    hits: int = 0
    damage_done: float = 0.0
    damage_possible: float = 0.0
    # Not written by every scenario; zero when absent or unreadable
    sens_scale: str = ""
    horiz_sens: float = 0.0
    vert_sens: float = 0.0
    fov: float = 0.0
    hide_gun: bool = False
    crosshair: str = ""
    crosshair_scale: float = 0.0
    crosshair_color: str = ""
    ads_sens: float = 0.0
    ads_zoom_scale: float = 0.0

    @property
    def accuracy(self) -> float:
        """Hits per shot, 0.0 when nothing was fired."""
        return self.hits / self.shots if self.shots > 0 else 0.0


@dataclass(frozen=True)
class Statistics:
    """Aggregate scenario results, third section of the file."""

    kills: float
    deaths: float
    fight_time: float
    avg_ttk: float
    damage_done: float
    damage_taken: float
    midairs: float
    midaired: float
    directs: float
    directed: float
    distance_traveled: float
    scenario: str
    score: float
    hash: str
    game_version: str


@dataclass(frozen=True)
class Kill:
    """One row of the kill log."""

    kill_number: float
    timestamp: str  # wall-clock label, e.g. "14:05:31.402"
    bot: str
    weapon: str
    ttk: str  # written with a unit suffix, e.g. "0.512s"
    shots: float
    hits: float
    accuracy: float
    damage_done: float
    damage_possible: float
    efficiency: float
    cheated: bool


@dataclass(frozen=True)
class Session:
    """
    One parsed stats file.

    Sections that failed to decode are left as None (or an empty kill log);
    see ParseReport for the reason.
    """

    session_hash: str
    time: datetime
    general_settings: Optional[GeneralSettings] = None
    weapon_settings: Optional[WeaponSettings] = None
    statistics: Optional[Statistics] = None
    kills: tuple[Kill, ...] = field(default_factory=tuple)

    @property
    def kill_count(self) -> int:
        return len(self.kills)

    @property
    def scenario(self) -> str:
        """Scenario name from the statistics section, empty when absent."""
        return self.statistics.scenario if self.statistics else ""
