"""
FormFlow Logger Module

Logging for the questionnaire engine tools with dual output (file + console).
Log format: FormFlow|{YYMMDD}_{HHMMSS}|{message}
File naming: FF_{slug}_v{version}_{YYMMDD}_{HHMMSS}_log.txt
"""

import sys
from datetime import datetime
from pathlib import Path


class FormLogger:
    """Logger with dual output (file + console) and custom format."""

    def __init__(
        self,
        log_dir: str | Path,
        slug: str,
        version: str,
        silent: bool = False
    ):
        self.silent = silent
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        now = datetime.now()
        timestamp = now.strftime("%y%m%d_%H%M%S")
        version_str = version.replace(".", "")
        filename = f"FF_{slug}_v{version_str}_{timestamp}_log.txt"
        self.log_path = self.log_dir / filename

        self.log_file = open(self.log_path, "w", encoding="utf-8")
        self.start_time = now
        self.warning_count = 0

    def _format_message(self, message: str) -> str:
        """Format message with FormFlow prefix and timestamp."""
        timestamp = datetime.now().strftime("%y%m%d_%H%M%S")
        return f"FormFlow|{timestamp}|{message}"

    def log(self, message: str) -> None:
        """Write a formatted log message to file (and console unless silent)."""
        formatted = self._format_message(message)
        self.log_file.write(formatted + "\n")
        self.log_file.flush()

        if not self.silent:
            print(formatted)

    def warn(self, message: str) -> None:
        """Log a recoverable problem (malformed input absorbed with a default)."""
        self.warning_count += 1
        self.log(f"WARNING: {message}")

    def progress(self, char: str) -> None:
        """Write a progress character without newline."""
        sys.stdout.write(char)
        sys.stdout.flush()

    def newline(self) -> None:
        """Write a newline to console (for after progress indicators)."""
        print()

    def close(self) -> None:
        """Close the log file."""
        if self.log_file and not self.log_file.closed:
            self.log_file.close()

    @property
    def elapsed_seconds(self) -> float:
        """Return seconds elapsed since logger was created."""
        return (datetime.now() - self.start_time).total_seconds()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
