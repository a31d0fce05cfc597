"""Shared fixtures: stats files laid out the way the game writes them."""

from datetime import datetime, timezone

import pytest

from aimlog.core.config import AimlogConfig

STATS_FILENAME = "Tile Frenzy - Challenge - 2023.01.15-14.05.30 Stats.csv"
STATS_TIME = datetime(2023, 1, 15, 14, 5, 30, tzinfo=timezone.utc)

KILLS_BLOCK = "\r\n".join([
    "Kill #,Timestamp,Bot,Weapon,TTK,Shots,Hits,Accuracy,Damage Done,Damage Possible,Efficiency,Cheated",
    "1,14:05:31.402,Target,pistol,0.512s,2,2,1.0,200.0,200.0,1.0,false",
    "2,14:05:32.100,Target,pistol,0.698s,3,2,0.666667,200.0,300.0,0.666667,false",
])

WEAPON_BLOCK = "\r\n".join([
    "Weapon,Shots,Hits,Damage Done,Damage Possible,,Sens Scale,Horiz Sens,Vert Sens,FOV,Hide Gun,"
    "Crosshair,Crosshair Scale,Crosshair Color,ADS Sens,ADS Zoom Scale",
    "pistol,40,32,3200.0,4000.0,,Valorant,0.35,0.35,103.0,false,dot.png,1.0,FFFFFF,0.35,1.0",
])

STATISTICS_BLOCK = "\r\n".join([
    "Kills:,30",
    "Deaths:,0",
    "Fight Time:,60.0",
    "Avg TTK:,0.55",
    "Damage Done:,3000.0",
    "Damage Taken:,0.0",
    "Midairs:,0",
    "Midaired:,0",
    "Directs:,0",
    "Directed:,0",
    "Distance Traveled:,0.0",
    "Scenario:,Tile Frenzy",
    "Score:,812.5",
    "Hash:,0f4c1e2b",
    "Game Version:,3.0.0",
])

GENERAL_BLOCK = "\r\n".join([
    "Input Lag:,0",
    "Max FPS (config):,240",
    "Sens Scale:,Valorant",
    "Horiz Sens:,0.35",
    "Vert Sens:,0.35",
    "FOV:,103",
    "Hide Gun:,false",
    "Crosshair:,dot.png",
    "Crosshair Scale:,1.0",
    "Crosshair Color:,FFFFFF",
]) + "\r\n"


def build_content(
    kills: str = KILLS_BLOCK,
    weapon: str = WEAPON_BLOCK,
    statistics: str = STATISTICS_BLOCK,
    general: str = GENERAL_BLOCK,
) -> str:
    return "\r\n\r\n".join([kills, weapon, statistics, general])


@pytest.fixture
def stats_filename():
    """Filename of a regular challenge run."""
    return STATS_FILENAME


@pytest.fixture
def stats_time():
    """Session time encoded in stats_filename."""
    return STATS_TIME


@pytest.fixture
def blocks():
    """The four well-formed sections, keyed by section name."""
    return {
        "kills": KILLS_BLOCK,
        "weapon": WEAPON_BLOCK,
        "statistics": STATISTICS_BLOCK,
        "general": GENERAL_BLOCK,
    }


@pytest.fixture
def make_content():
    """Builder for file content; override any section by keyword."""
    return build_content


@pytest.fixture
def stats_content():
    """Content of a well-formed stats file."""
    return build_content()


@pytest.fixture
def write_stats_file():
    """Write stats content to disk byte-for-byte (CRLF preserved)."""

    def write(directory, filename=STATS_FILENAME, content=None):
        path = directory / filename
        path.write_bytes((content if content is not None else build_content()).encode("utf-8"))
        return path

    return write


@pytest.fixture
def stats_dir(tmp_path, write_stats_file):
    """Folder with two stats files and one unrelated file."""
    folder = tmp_path / "stats"
    folder.mkdir()
    write_stats_file(folder, "Tile Frenzy - Challenge - 2023.01.15-14.05.30 Stats.csv")
    write_stats_file(folder, "Gridshot - Challenge - 2023.01.16-09.00.00 Stats.csv")
    (folder / "notes.txt").write_text("not a stats file")
    return folder


@pytest.fixture
def config(stats_dir):
    """Default configuration pointed at stats_dir."""
    config = AimlogConfig()
    config.ingest.source_dir = str(stats_dir)
    return config
