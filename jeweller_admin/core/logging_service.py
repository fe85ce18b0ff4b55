"""
Centralized logging service for the Jeweller admin backend.
Provides structured logging with database storage and easy integration.
"""

import json
import traceback
from datetime import datetime
from flask import request, has_request_context, current_app
from .database import Database
from .config import Config


class LoggingService:
    """Centralized logging service for application-wide logging"""

    @staticmethod
    def _get_log_db():
        """LOG_DB from app.config, falling back to Config"""
        try:
            val = current_app.config.get('LOG_DB')
            if val:
                return val
        except RuntimeError:
            pass
        return Config.LOG_DB

    @staticmethod
    def _get_request_context():
        """Extract request context information"""
        if not has_request_context():
            return None, None, None

        try:
            ip_address = request.headers.get('X-Forwarded-For', request.remote_addr)
            if ip_address and ',' in ip_address:
                ip_address = ip_address.split(',')[0].strip()

            user_agent = request.headers.get('User-Agent', '')
            request_path = request.path

            return ip_address, user_agent, request_path
        except Exception:
            return None, None, None

    @staticmethod
    def log(level, source, message, details=None, user_id=None):
        """
        Log a message to the database

        Args:
            level (str): Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            source (str): Source component (notifications, articles, taxonomy, etc.)
            message (str): Main log message
            details (str/dict/list): Additional details (JSON-encoded if not a string)
            user_id (str): Optional user identifier
        """
        try:
            log_db = LoggingService._get_log_db()
            Database.ensure_logs_table(log_db)

            ip_address, user_agent, request_path = LoggingService._get_request_context()

            if isinstance(details, (dict, list)):
                details = json.dumps(details, indent=2, default=str)

            timestamp = datetime.now().isoformat()

            Database.insert_log(log_db, (
                timestamp, level.upper(), source, message, details,
                ip_address, user_agent, request_path, user_id
            ))

        except Exception as e:
            # Fallback to console logging if database fails
            print(f"[{datetime.now().isoformat()}] [{level.upper()}] [{source}] {message}")
            if details:
                print(f"Details: {details}")
            print(f"Logging service error: {e}")

    @staticmethod
    def debug(source, message, details=None, user_id=None):
        """Log debug message"""
        LoggingService.log('DEBUG', source, message, details, user_id)

    @staticmethod
    def info(source, message, details=None, user_id=None):
        """Log info message"""
        LoggingService.log('INFO', source, message, details, user_id)

    @staticmethod
    def warning(source, message, details=None, user_id=None):
        """Log warning message"""
        LoggingService.log('WARNING', source, message, details, user_id)

    @staticmethod
    def error(source, message, details=None, user_id=None):
        """Log error message"""
        LoggingService.log('ERROR', source, message, details, user_id)

    @staticmethod
    def log_error_with_traceback(source, error, details=None):
        """Log error with full traceback"""
        error_details = {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'traceback': traceback.format_exc()
        }
        if details:
            error_details['additional_details'] = details

        LoggingService.error(source, f"Exception occurred: {type(error).__name__}", error_details)

    @staticmethod
    def recent(source=None, limit=50):
        """Most recent log entries, optionally for one source"""
        try:
            return Database.get_recent_logs(LoggingService._get_log_db(), source, limit)
        except Exception as e:
            print(f"Failed to read logs: {e}")
            return []

    @staticmethod
    def cleanup_old_logs(days_to_keep=30):
        """Clean up old log entries"""
        try:
            deleted_count = Database.delete_logs_before(LoggingService._get_log_db(), days_to_keep)
            LoggingService.info('system', f"Cleaned up {deleted_count} old log entries")
            return deleted_count
        except Exception as e:
            LoggingService.error('system', f"Failed to cleanup old logs: {e}")
            return 0
