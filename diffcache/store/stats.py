"""Token savings counters."""

from typing import Tuple

from diffcache.exceptions import ValidationException
from diffcache.interfaces.cache import IStatsAccumulator
from diffcache.store.database import Database

TOKENS_SAVED_KEY = "tokens_saved"


class StatsAccumulator(IStatsAccumulator):
    """
    Global and per-session savings counters.

    Each increment is a single SQL statement (value = value + ?), so
    concurrent writers never lose updates even without an enclosing
    transaction.
    """

    def __init__(self, database: Database):
        self._db = database

    def add_tokens_saved(self, session_id: str, amount: int) -> None:
        if amount < 0:
            raise ValidationException(
                "Token savings cannot be negative",
                details={"session_id": session_id, "amount": amount},
            )
        conn = self._db.connection
        conn.execute(
            "UPDATE stats SET value = value + ? WHERE key = ?",
            (amount, TOKENS_SAVED_KEY),
        )
        conn.execute(
            "INSERT INTO session_stats (session_id, key, value) VALUES (?, ?, ?) "
            "ON CONFLICT(session_id, key) DO UPDATE SET value = value + excluded.value",
            (session_id, TOKENS_SAVED_KEY, amount),
        )

    def get_totals(self, session_id: str) -> Tuple[int, int]:
        conn = self._db.connection
        total = conn.execute(
            "SELECT value FROM stats WHERE key = ?", (TOKENS_SAVED_KEY,)
        ).fetchone()
        session_total = conn.execute(
            "SELECT value FROM session_stats WHERE session_id = ? AND key = ?",
            (session_id, TOKENS_SAVED_KEY),
        ).fetchone()
        return (total[0] if total else 0, session_total[0] if session_total else 0)

    def reset_all(self) -> None:
        conn = self._db.connection
        conn.execute("DELETE FROM session_stats")
        conn.execute(
            "INSERT INTO stats (key, value) VALUES (?, 0) "
            "ON CONFLICT(key) DO UPDATE SET value = 0",
            (TOKENS_SAVED_KEY,),
        )
