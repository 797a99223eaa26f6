"""
Run logs for the BibDiff tools.

Each tool run prints its report and keeps a copy under logs/, named after
the config (or first source) and the tool:

    logs/bibdiff.yaml.compare.log
    logs/fub.bib.export.log

The log file starts with the compared sources and ends with the number of
error lines the run produced, so a failed download is visible without
reading the whole report.

Usage:
    from logging_utils import Logger

    with Logger("compare", input_file="bibdiff.yaml",
                sources=["a.bib", "b.bib"]) as logger:
        logger.log("Loading sources...")
        logger.log_section("Summary")
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import IO, Optional, Sequence

SEPARATOR_WIDTH = 70
ERROR_MARK = "❌"


def get_logs_dir() -> Path:
    """logs/ next to this file, created on demand."""
    logs_dir = Path(__file__).parent.resolve() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir


def log_path_for(
    tool_name: str,
    input_file: Optional[str | Path] = None,
    log_dir: Optional[str | Path] = None,
) -> Path:
    """``<input name>.<tool>.log``, or ``<tool>_<timestamp>.log`` without input."""
    directory = Path(log_dir) if log_dir else get_logs_dir()
    directory.mkdir(parents=True, exist_ok=True)
    if input_file:
        return directory / f"{Path(input_file).name}.{tool_name}.log"
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return directory / f"{tool_name}_{stamp}.log"


class Logger:
    """Prints tool output and mirrors it into the run's log file."""

    def __init__(
        self,
        tool_name: str,
        input_file: Optional[str | Path] = None,
        log_dir: Optional[str | Path] = None,
        sources: Sequence[str] = (),
    ):
        self.tool_name = tool_name
        self.error_count = 0
        self._log_path = log_path_for(tool_name, input_file, log_dir)
        self._file: Optional[IO[str]] = None

        header = [
            "=" * SEPARATOR_WIDTH,
            f"BIBDIFF {tool_name.upper()} LOG",
            f"Generated: {datetime.now():%Y-%m-%d %H:%M:%S}",
        ]
        if input_file:
            header.append(f"Input: {input_file}")
        if sources:
            header.append(f"Sources: {', '.join(sources)}")
        header.append("=" * SEPARATOR_WIDTH)

        try:
            self._file = open(self._log_path, "w", encoding="utf-8")
            self._file.write("\n".join(header) + "\n\n")
        except OSError as e:
            print(f"⚠️  Could not create log file {self._log_path}: {e}")
            self._file = None

    @property
    def log_path(self) -> Path:
        return self._log_path

    def log(self, message: str = "", prefix: str = "") -> None:
        """Print one line and append it to the log file."""
        line = f"{prefix} {message}".strip() if prefix else message
        if line.lstrip().startswith(ERROR_MARK):
            self.error_count += 1

        print(line)
        if self._file:
            self._file.write(line + "\n")
            self._file.flush()

    def log_section(self, title: str) -> None:
        self.log("")
        self.log(f"--- {title} ---")

    def close(self) -> None:
        if self._file:
            self._file.write(f"\n{'=' * SEPARATOR_WIDTH}\n")
            self._file.write(f"Errors: {self.error_count}\n")
            self._file.write(f"Log completed: {datetime.now():%Y-%m-%d %H:%M:%S}\n")
            self._file.close()
            self._file = None
            print(f"\n📝 Log saved to: {self._log_path}")

    def __enter__(self) -> "Logger":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
