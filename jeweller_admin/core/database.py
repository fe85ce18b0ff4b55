import os
import sqlite3
import threading
from datetime import datetime, timedelta
from .config import Config


class Database:
    # Dispatch worker threads may log concurrently
    _lock = threading.Lock()

    @staticmethod
    def connect(path):
        db_dir = os.path.dirname(path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
        return sqlite3.connect(path)

    @classmethod
    def ensure_logs_table(cls, path=None):
        """Ensure the app_logs table and its indexes exist"""
        path = path or Config.LOG_DB
        with cls._lock:
            with cls.connect(path) as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS app_logs (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        timestamp TEXT NOT NULL,
                        level TEXT NOT NULL,
                        source TEXT NOT NULL,
                        message TEXT NOT NULL,
                        details TEXT,
                        ip_address TEXT,
                        user_agent TEXT,
                        request_path TEXT,
                        user_id TEXT
                    )
                """)
                cursor.execute("""
                    CREATE INDEX IF NOT EXISTS idx_logs_timestamp
                    ON app_logs(timestamp DESC)
                """)
                cursor.execute("""
                    CREATE INDEX IF NOT EXISTS idx_logs_source
                    ON app_logs(source)
                """)
                conn.commit()

    @classmethod
    def insert_log(cls, path, row):
        """Insert one app_logs row: (timestamp, level, source, message, details,
        ip_address, user_agent, request_path, user_id)"""
        with cls._lock:
            with cls.connect(path) as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    INSERT INTO app_logs
                    (timestamp, level, source, message, details, ip_address, user_agent, request_path, user_id)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, row)
                conn.commit()

    @classmethod
    def get_recent_logs(cls, path, source=None, limit=50):
        """Return the most recent log rows as dicts, newest first"""
        with cls.connect(path) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()
            if source:
                cursor.execute("""
                    SELECT * FROM app_logs WHERE source = ?
                    ORDER BY id DESC LIMIT ?
                """, (source, limit))
            else:
                cursor.execute("""
                    SELECT * FROM app_logs ORDER BY id DESC LIMIT ?
                """, (limit,))
            return [dict(row) for row in cursor.fetchall()]

    @classmethod
    def delete_logs_before(cls, path, days_to_keep):
        cutoff_iso = (datetime.now() - timedelta(days=days_to_keep)).isoformat()
        with cls._lock:
            with cls.connect(path) as conn:
                cursor = conn.cursor()
                cursor.execute("DELETE FROM app_logs WHERE timestamp < ?", (cutoff_iso,))
                conn.commit()
                return cursor.rowcount
