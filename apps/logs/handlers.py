import json
import logging
import threading
from typing import Any, Dict

from django.conf import settings
from django.db import DatabaseError, connection
from django.utils import timezone

from apps.logs.utils import scrub_context

INSERT_LOG_SQL = """
    INSERT INTO logs (level, channel, message, context, extra, environment, created_at)
    VALUES (%s, %s, %s, %s, %s, %s, %s)
"""


class DatabaseLogHandler(logging.Handler):
    """Persists records to the ``logs`` table from a short-lived thread.

    Records that did not come through ``log_event`` (django.request, plain
    logger calls) are scrubbed here as well.
    """

    def _row(self, record: logging.LogRecord):
        context: Dict[str, Any] = scrub_context(getattr(record, "context", None))
        extra_data: Dict[str, Any] = scrub_context(getattr(record, "extra_data", None))
        return [
            record.levelname.lower(),
            getattr(record, "channel", record.name),
            self.format(record),
            json.dumps(context, default=str),
            json.dumps(extra_data, default=str),
            getattr(record, "environment", None) or getattr(settings, "APP_ENV", "local"),
            timezone.now(),
        ]

    def emit(self, record: logging.LogRecord) -> None:
        def _write():
            try:
                with connection.cursor() as cursor:
                    cursor.execute(INSERT_LOG_SQL, self._row(record))
            except DatabaseError:
                # Log table unavailable; drop the row.
                return
            except Exception:
                self.handleError(record)
            finally:
                connection.close()

        threading.Thread(target=_write, daemon=True).start()
