# stdlib
import sys
from pathlib import Path
from datetime import datetime
from typing import Optional
from types import TracebackType
# projectlib
from building_energy_modeling.utils.paths import validate_address
from building_energy_modeling.utils.typing import (
    Verbosity,
    Address,
    LogLevel
)

class Logger(object):
    """
    Lightweight callable logger with optional file persistence.

    Messages carry a verbosity level and a severity tag. A message is
    emitted when the logger's verbosity threshold is at least the
    message's verbosity, and it is written either to stderr (so that
    console output never mixes with data written to stdout) or appended
    to ``log.txt`` in the configured log directory.

    Verbosity levels used throughout the package:

    - ``0``: warnings, errors and run milestones
    - ``1``: informational detail (parsed headers, chosen model)
    - ``2``: debug detail (per grid point scores, dropped data)
    """

    def __init__(
        self,
        verbose: Verbosity = 0,
        log_dir: Optional[Address] = None,
        write_log: bool = False
    ) -> None:
        """
        Initialize the logger.

        Parameters
        ----------
        verbose : Verbosity, default 0
            Verbosity threshold. Messages with a verbosity level less
            than or equal to this value will be emitted.
        log_dir : Address, optional
            Directory in which the log file will be written if
            `write_log` is True. Defaults to the current working
            directory. The file name is fixed as `log.txt`.
        write_log : bool, default False
            If True, messages are appended to a log file. If False,
            messages are printed to stderr.
        """
        self.verbose = verbose
        log_dir = Path.cwd() if log_dir is None else Path(log_dir)
        # The directory only has to exist when messages go to the file
        if write_log:
            log_dir = validate_address(log_dir, extension=None, mkdir=True)
        self.log_path = log_dir / "log.txt"
        # Toggle between stderr printing and file logging
        self.write_log = write_log

    def __call__(
            self,
            msg: str,
            verbosity: int = 0,
            level: LogLevel = "INFO"
        ) -> None:
        """
        Emit a log message if the verbosity threshold is met.

        This allows the logger instance to be used as a callable,
        e.g. `logger("message", verbosity=1)`.

        Parameters
        ----------
        msg : str
            Message to be logged.
        verbosity : int, default 0
            Verbosity level associated with the message. The message
            is emitted only if `self.verbose >= verbosity`.
        level : LogLevel, default "INFO"
            Severity tag written in front of the message.
        """
        if self.verbose >= verbosity:
            formatted = self._format(msg, level)
            if self.write_log:
                self.write(formatted)
            else:
                print(formatted, file=sys.stderr)

    def debug(self, msg: str) -> None:
        self(msg, verbosity=2, level="DEBUG")

    def info(self, msg: str) -> None:
        self(msg, verbosity=1, level="INFO")

    def warning(self, msg: str) -> None:
        self(msg, verbosity=0, level="WARNING")

    def error(self, msg: str) -> None:
        self(msg, verbosity=0, level="ERROR")

    def write(self, msg: str) -> None:
        """
        Append a formatted message to the log file.

        Parameters
        ----------
        msg : str
            Message to append to the log file.
        """
        with open(self.log_path, "a", encoding="utf-8") as file:
            file.write(msg + "\n")

    def _format(self, msg: str, level: LogLevel) -> str:
        """
        Format a log message with a timestamp and severity tag.

        Parameters
        ----------
        msg : str
            Raw log message.
        level : LogLevel
            Severity tag.

        Returns
        -------
        str
            Prefixed log message, e.g. ``[2014-12-25T15:45:00]-[INFO] ...``.
        """
        ts = datetime.now().isoformat(timespec="seconds")
        return f"[{ts}]-[{level}] {msg}"

    def __enter__(self) -> "Logger":
        return self

    def __exit__(
            self,
            exc_type: Optional[type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
        ) -> None:
        if exc is not None:
            self.error(f"{exc_type.__name__ if exc_type else 'Error'}: {exc}")


def resolve_logger(logger: Optional[Logger]) -> Logger:
    """Return ``logger`` or a stderr logger emitting only level 0."""
    return logger if logger is not None else Logger(verbose=0)
