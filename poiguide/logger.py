"""Logging module for poiguide."""

import json
from datetime import datetime
from typing import Optional, Callable


class Logger:
    """Logs events to stdout and an optional file"""

    def __init__(self, log_path: Optional[str] = None, callback: Optional[Callable] = None,
                 echo: bool = True):
        self.log_path = log_path
        self.callback = callback
        self.echo = echo
        self.file = None
        if log_path:
            self.file = open(log_path, "a", encoding="utf-8")
            self._write_header()

    def _write_header(self):
        if self.file:
            self.file.write(f"\n{'='*60}\n")
            self.file.write(f"poiguide session - {datetime.now().isoformat()}\n")
            self.file.write(f"{'='*60}\n\n")
            self.file.flush()

    def log(self, message: str, data: Optional[dict] = None):
        """Log a message with optional structured data"""
        timestamp = datetime.now().isoformat()
        line = f"[{timestamp}] {message}"
        if data:
            line += f" | {json.dumps(data, ensure_ascii=False, default=str)}"
        if self.echo:
            print(line)
        if self.file:
            self.file.write(line + "\n")
            self.file.flush()
        if self.callback:
            self.callback(message, data)

    def close(self):
        if self.file:
            self.file.close()
            self.file = None


class NullLogger(Logger):
    """Logger that drops everything (default for library use)"""

    def __init__(self):
        super().__init__(echo=False)

    def log(self, message: str, data: Optional[dict] = None):
        pass
