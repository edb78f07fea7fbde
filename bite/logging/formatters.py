"""Logging formatters for stream routing."""

import logging


class StreamFormatter(logging.Formatter):
    """Logging formatter that prefixes remote stderr lines.

    Records carrying ``extra={"stream": "stderr"}`` come from a remote
    command's error stream and are tagged so they can be told apart from
    bite's own status messages on the local stderr.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with stream prefix if present.

        Parameters
        ----------
        record : logging.LogRecord
            Log record to format

        Returns
        -------
        str
            Formatted log message with optional stream prefix
        """
        msg = super().format(record)
        stream = getattr(record, "stream", None)

        if stream == "stderr":
            return f"[remote] {msg}"

        return msg
