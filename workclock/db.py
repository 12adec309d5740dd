import sqlite3
import uuid
from datetime import date
from typing import Optional

ENTRY_FIELDS = (
    "date",
    "day_name",
    "check_in_1",
    "check_out_1",
    "check_in_2",
    "check_out_2",
    "shift1_minutes",
    "shift2_minutes",
    "standard_minutes",
    "overtime_minutes",
    "location",
    "notes",
)

SETTINGS_FIELDS = ("monthly_salary", "workday_hours", "works_saturdays", "currency")

DEFAULT_SETTINGS = {
    "monthly_salary": 0.0,
    "workday_hours": 9,
    "works_saturdays": False,
    "currency": "USD",
}


def _settings_dict(row) -> dict:
    res = dict(row)
    res["works_saturdays"] = bool(res["works_saturdays"])
    return res


class Storage:
    """
    Keyed CRUD over work entries, user settings and users, backed by sqlite.
    Every call opens its own connection; the object itself holds no state
    besides the database path, so one instance is shared per process.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self.init_db()

    def get_connection(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self):
        conn = self.get_connection()
        try:
            c = conn.cursor()
            c.execute("PRAGMA foreign_keys = ON;")

            c.execute("""
            CREATE TABLE IF NOT EXISTS work_entries (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                date TEXT NOT NULL,
                day_name TEXT NOT NULL,
                check_in_1 TEXT NOT NULL DEFAULT '',
                check_out_1 TEXT NOT NULL DEFAULT '',
                check_in_2 TEXT NOT NULL DEFAULT '',
                check_out_2 TEXT NOT NULL DEFAULT '',
                shift1_minutes INTEGER NOT NULL DEFAULT 0,
                shift2_minutes INTEGER NOT NULL DEFAULT 0,
                standard_minutes INTEGER NOT NULL DEFAULT 0,
                overtime_minutes INTEGER NOT NULL DEFAULT 0,
                location TEXT NOT NULL DEFAULT '',
                notes TEXT NOT NULL DEFAULT '',
                created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                updated_at TEXT DEFAULT CURRENT_TIMESTAMP
            );
            """)
            c.execute("CREATE INDEX IF NOT EXISTS idx_work_entries_user_date ON work_entries (user_id, date);")

            c.execute("""
            CREATE TABLE IF NOT EXISTS user_settings (
                user_id TEXT PRIMARY KEY,
                monthly_salary REAL NOT NULL DEFAULT 0,
                workday_hours INTEGER NOT NULL DEFAULT 9,
                works_saturdays INTEGER NOT NULL DEFAULT 0,
                currency TEXT NOT NULL DEFAULT 'USD',
                created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                updated_at TEXT DEFAULT CURRENT_TIMESTAMP
            );
            """)

            c.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                email TEXT UNIQUE NOT NULL,
                name TEXT NOT NULL,
                password_hash TEXT NOT NULL,
                created_at TEXT DEFAULT CURRENT_TIMESTAMP
            );
            """)
            conn.commit()
        finally:
            conn.close()

    # --- Work entries ---

    def find_latest_entry(self, user_id: str, start: date, end: date) -> Optional[dict]:
        """Newest entry (by creation) with start <= date < end."""
        conn = self.get_connection()
        try:
            row = conn.execute("""
                SELECT * FROM work_entries
                WHERE user_id = ? AND date >= ? AND date < ?
                ORDER BY created_at DESC, id DESC
                LIMIT 1
            """, (user_id, start.isoformat(), end.isoformat())).fetchone()
            return dict(row) if row else None
        finally:
            conn.close()

    def find_entries(self, user_id: str, start: Optional[date] = None, end: Optional[date] = None) -> list[dict]:
        query = "SELECT * FROM work_entries WHERE user_id = ?"
        params = [user_id]
        if start:
            query += " AND date >= ?"
            params.append(start.isoformat())
        if end:
            query += " AND date < ?"
            params.append(end.isoformat())
        query += " ORDER BY date DESC, id DESC"

        conn = self.get_connection()
        try:
            return [dict(row) for row in conn.execute(query, params).fetchall()]
        finally:
            conn.close()

    def get_entry(self, user_id: str, entry_id: int) -> Optional[dict]:
        conn = self.get_connection()
        try:
            row = conn.execute(
                "SELECT * FROM work_entries WHERE id = ? AND user_id = ?", (entry_id, user_id)
            ).fetchone()
            return dict(row) if row else None
        finally:
            conn.close()

    def create_entry(self, user_id: str, fields: dict) -> dict:
        cols = [f for f in ENTRY_FIELDS if f in fields]
        values = [fields[f] for f in cols]
        placeholders = ", ".join("?" for _ in range(len(cols) + 1))

        conn = self.get_connection()
        try:
            c = conn.cursor()
            c.execute(
                f"INSERT INTO work_entries (user_id, {', '.join(cols)}) VALUES ({placeholders})",
                [user_id, *values],
            )
            conn.commit()
            row = c.execute("SELECT * FROM work_entries WHERE id = ?", (c.lastrowid,)).fetchone()
            return dict(row)
        finally:
            conn.close()

    def update_entry(self, user_id: str, entry_id: int, fields: dict) -> Optional[dict]:
        cols = [f for f in ENTRY_FIELDS if f in fields]
        sets = [f"{f} = ?" for f in cols] + ["updated_at = CURRENT_TIMESTAMP"]
        values = [fields[f] for f in cols]

        conn = self.get_connection()
        try:
            c = conn.cursor()
            c.execute(
                f"UPDATE work_entries SET {', '.join(sets)} WHERE id = ? AND user_id = ?",
                [*values, entry_id, user_id],
            )
            conn.commit()
            if c.rowcount == 0:
                return None
            row = c.execute("SELECT * FROM work_entries WHERE id = ?", (entry_id,)).fetchone()
            return dict(row)
        finally:
            conn.close()

    def delete_entry(self, user_id: str, entry_id: int) -> bool:
        conn = self.get_connection()
        try:
            c = conn.cursor()
            c.execute("DELETE FROM work_entries WHERE id = ? AND user_id = ?", (entry_id, user_id))
            conn.commit()
            return c.rowcount > 0
        finally:
            conn.close()

    # --- Settings ---

    def get_or_create_settings(self, user_id: str) -> dict:
        conn = self.get_connection()
        try:
            c = conn.cursor()
            row = c.execute("SELECT * FROM user_settings WHERE user_id = ?", (user_id,)).fetchone()
            if not row:
                c.execute("""
                    INSERT INTO user_settings (user_id, monthly_salary, workday_hours, works_saturdays, currency)
                    VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT(user_id) DO NOTHING
                """, (
                    user_id,
                    DEFAULT_SETTINGS["monthly_salary"],
                    DEFAULT_SETTINGS["workday_hours"],
                    int(DEFAULT_SETTINGS["works_saturdays"]),
                    DEFAULT_SETTINGS["currency"],
                ))
                conn.commit()
                row = c.execute("SELECT * FROM user_settings WHERE user_id = ?", (user_id,)).fetchone()
            return _settings_dict(row)
        finally:
            conn.close()

    def update_settings(self, user_id: str, fields: dict) -> dict:
        current = self.get_or_create_settings(user_id)
        merged = {f: fields.get(f, current[f]) for f in SETTINGS_FIELDS}

        conn = self.get_connection()
        try:
            c = conn.cursor()
            c.execute("""
                UPDATE user_settings
                SET monthly_salary = ?, workday_hours = ?, works_saturdays = ?, currency = ?,
                    updated_at = CURRENT_TIMESTAMP
                WHERE user_id = ?
            """, (
                merged["monthly_salary"],
                merged["workday_hours"],
                int(bool(merged["works_saturdays"])),
                merged["currency"],
                user_id,
            ))
            conn.commit()
            row = c.execute("SELECT * FROM user_settings WHERE user_id = ?", (user_id,)).fetchone()
            return _settings_dict(row)
        finally:
            conn.close()

    # --- Users ---

    def find_user_by_email(self, email: str) -> Optional[dict]:
        conn = self.get_connection()
        try:
            row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
            return dict(row) if row else None
        finally:
            conn.close()

    def create_user(self, email: str, name: str, password_hash: str) -> dict:
        uid = str(uuid.uuid4())
        conn = self.get_connection()
        try:
            c = conn.cursor()
            c.execute(
                "INSERT INTO users (id, email, name, password_hash) VALUES (?, ?, ?, ?)",
                (uid, email, name, password_hash),
            )
            conn.commit()
            row = c.execute("SELECT * FROM users WHERE id = ?", (uid,)).fetchone()
            return dict(row)
        finally:
            conn.close()
