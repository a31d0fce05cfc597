"""
aimlog - Aim trainer stats ingestion

Parses the multi-section stats files written by the aim trainer after every
scenario into Session records, and ships them as line-delimited JSON to
object storage.

Usage:
    from aimlog import parse_session_file, encode_sessions

    session = parse_session_file("Tile Frenzy - Challenge - 2023.01.15-14.05.30 Stats.csv")
    print(session.statistics.score, len(session.kills))

    payload = encode_sessions([session])
"""

__version__ = "0.3.0"
__author__ = "aimlog Contributors"


def __getattr__(name):
    """Lazy re-exports so `import aimlog` stays cheap until a name is used."""
    # Parser
    if name == "SessionParser":
        from aimlog.core.parser import SessionParser
        return SessionParser
    elif name == "Session":
        from aimlog.core.models import Session
        return Session
    elif name == "parse_session":
        from aimlog.core.parser import parse_session
        return parse_session
    elif name == "parse_session_file":
        from aimlog.core.parser import parse_session_file
        return parse_session_file
    # Export
    elif name == "encode_sessions":
        from aimlog.export import encode_sessions
        return encode_sessions
    elif name == "sessions_to_dataframe":
        from aimlog.export import sessions_to_dataframe
        return sessions_to_dataframe
    # Ingest
    elif name == "run_ingest":
        from aimlog.ingest import run_ingest
        return run_ingest
    elif name == "StatsWatcher":
        from aimlog.watcher import StatsWatcher
        return StatsWatcher
    raise AttributeError(f"module 'aimlog' has no attribute '{name}'")


__all__ = [
    # Version
    "__version__",
    # Parser
    "SessionParser",
    "Session",
    "parse_session",
    "parse_session_file",
    # Export
    "encode_sessions",
    "sessions_to_dataframe",
    # Ingest
    "run_ingest",
    "StatsWatcher",
]
