"""
SQLite persistence for game storage.

Each game row keeps the text snapshot of its current position, the
position it started from, the moves applied since, and who plays each
side. Loading replays the moves so undo and game records keep working
after a restart.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

from checkers.core.state import GameState

logger = logging.getLogger(__name__)

# Default database location
DEFAULT_DB_PATH = Path(__file__).parent / "games.db"


def init_db(db_path: Path = None) -> None:
    """Initialize the database schema."""
    if db_path is None:
        db_path = DEFAULT_DB_PATH
    with get_connection(db_path) as conn:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS games (
                game_id TEXT PRIMARY KEY,
                black_type TEXT NOT NULL DEFAULT 'human',
                white_type TEXT NOT NULL DEFAULT 'computer',
                state TEXT NOT NULL,
                setup TEXT NOT NULL,
                moves_json TEXT NOT NULL DEFAULT '[]',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        conn.execute("CREATE INDEX IF NOT EXISTS idx_games_updated ON games(updated_at)")
        conn.commit()


@contextmanager
def get_connection(db_path: Path = None):
    """Get a database connection with proper cleanup."""
    if db_path is None:
        db_path = DEFAULT_DB_PATH
    conn = sqlite3.connect(str(db_path), timeout=10.0)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def restore_state(setup: str, moves: list, snapshot: str) -> GameState:
    """
    Rebuild a game by replaying its moves from the starting position.

    Falls back to the plain snapshot (without undo history) when the
    replay does not reach it.
    """
    state = GameState.from_string(setup)
    for start, end in moves:
        if not state.move(start, end):
            break
    if state.get_game_state() != snapshot:
        logger.warning("Replay does not match stored position, using snapshot")
        state = GameState.from_string(snapshot)
    return state


def save_game(
    game_id: str,
    state: GameState,
    black_type: str = "human",
    white_type: str = "computer",
    setup: Optional[str] = None,
    moves: Optional[list[tuple[int, int]]] = None,
    db_path: Path = None
) -> None:
    """Save or update a game in the database.

    If moves is None, only updates the position (doesn't overwrite moves_json
    or setup). If moves is provided, the starting position and move list are
    replaced as well.
    """
    if db_path is None:
        db_path = DEFAULT_DB_PATH
    now = datetime.utcnow().isoformat()
    snapshot = state.get_game_state()
    if setup is None:
        setup = GameState.new_game().get_game_state()

    with get_connection(db_path) as conn:
        if moves is not None:
            moves_json = json.dumps([list(m) for m in moves])
            conn.execute("""
                INSERT INTO games (game_id, black_type, white_type, state, setup,
                                   moves_json, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(game_id) DO UPDATE SET
                    state = excluded.state,
                    setup = excluded.setup,
                    moves_json = excluded.moves_json,
                    updated_at = excluded.updated_at
            """, (game_id, black_type, white_type, snapshot, setup, moves_json, now, now))
        else:
            # Update position only (for in-game state updates)
            conn.execute("""
                INSERT INTO games (game_id, black_type, white_type, state, setup,
                                   moves_json, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, '[]', ?, ?)
                ON CONFLICT(game_id) DO UPDATE SET
                    state = excluded.state,
                    updated_at = excluded.updated_at
            """, (game_id, black_type, white_type, snapshot, setup, now, now))
        conn.commit()


def append_move(game_id: str, start: int, end: int, db_path: Path = None) -> None:
    """Append a move to a game's move history."""
    if db_path is None:
        db_path = DEFAULT_DB_PATH
    now = datetime.utcnow().isoformat()

    with get_connection(db_path) as conn:
        row = conn.execute("SELECT moves_json FROM games WHERE game_id = ?", (game_id,)).fetchone()
        if row is None:
            return

        moves = json.loads(row["moves_json"]) if row["moves_json"] else []
        moves.append([start, end])

        conn.execute(
            "UPDATE games SET moves_json = ?, updated_at = ? WHERE game_id = ?",
            (json.dumps(moves), now, game_id)
        )
        conn.commit()


def pop_move(game_id: str, db_path: Path = None) -> Optional[tuple[int, int]]:
    """Remove and return the last move from a game's history (for undo)."""
    if db_path is None:
        db_path = DEFAULT_DB_PATH
    now = datetime.utcnow().isoformat()

    with get_connection(db_path) as conn:
        row = conn.execute("SELECT moves_json FROM games WHERE game_id = ?", (game_id,)).fetchone()
        if row is None:
            return None

        moves = json.loads(row["moves_json"]) if row["moves_json"] else []
        if not moves:
            return None

        start, end = moves.pop()

        conn.execute(
            "UPDATE games SET moves_json = ?, updated_at = ? WHERE game_id = ?",
            (json.dumps(moves), now, game_id)
        )
        conn.commit()
        return start, end


def _row_to_dict(row: sqlite3.Row) -> dict:
    moves = [tuple(m) for m in json.loads(row["moves_json"] or "[]")]
    return {
        "game_id": row["game_id"],
        "black_type": row["black_type"],
        "white_type": row["white_type"],
        "state": restore_state(row["setup"], moves, row["state"]),
        "setup": row["setup"],
        "moves": moves,
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
    }


def load_game(game_id: str, db_path: Path = None) -> Optional[dict]:
    """
    Load a game from the database.

    Returns dict with keys: game_id, black_type, white_type, state, setup,
    moves, created_at, updated_at. Or None if not found.
    """
    if db_path is None:
        db_path = DEFAULT_DB_PATH
    with get_connection(db_path) as conn:
        row = conn.execute(
            "SELECT * FROM games WHERE game_id = ?", (game_id,)
        ).fetchone()

        if row is None:
            return None
        return _row_to_dict(row)


def load_all_games(db_path: Path = None) -> list[dict]:
    """Load all games from the database, most recently updated first."""
    if db_path is None:
        db_path = DEFAULT_DB_PATH
    with get_connection(db_path) as conn:
        rows = conn.execute("SELECT * FROM games ORDER BY updated_at DESC").fetchall()
        return [_row_to_dict(row) for row in rows]


def delete_game(game_id: str, db_path: Path = None) -> bool:
    """Delete a game from the database. Returns True if deleted."""
    if db_path is None:
        db_path = DEFAULT_DB_PATH
    with get_connection(db_path) as conn:
        cursor = conn.execute("DELETE FROM games WHERE game_id = ?", (game_id,))
        conn.commit()
        return cursor.rowcount > 0


def cleanup_old_games(max_age_days: int = 7, empty_game_max_age_hours: int = 1, db_path: Path = None) -> int:
    """
    Delete old games and abandoned empty games.

    - Games not updated for max_age_days are deleted
    - Games with no moves older than empty_game_max_age_hours are deleted

    Returns number of games deleted.
    """
    if db_path is None:
        db_path = DEFAULT_DB_PATH

    old_cutoff = (datetime.utcnow() - timedelta(days=max_age_days)).isoformat()
    empty_cutoff = (datetime.utcnow() - timedelta(hours=empty_game_max_age_hours)).isoformat()

    with get_connection(db_path) as conn:
        cursor1 = conn.execute(
            "DELETE FROM games WHERE updated_at < ?", (old_cutoff,)
        )
        old_deleted = cursor1.rowcount

        cursor2 = conn.execute(
            "DELETE FROM games WHERE moves_json = '[]' AND updated_at < ?", (empty_cutoff,)
        )
        empty_deleted = cursor2.rowcount

        conn.commit()

    if old_deleted or empty_deleted:
        logger.info(f"Removed {old_deleted} old and {empty_deleted} empty games")
    return old_deleted + empty_deleted
