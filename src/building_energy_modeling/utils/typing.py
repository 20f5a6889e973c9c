# stdlib
from datetime import date
from typing import Literal, Union
from pathlib import Path
# thirdpartylib
import pandas as pd

# Verbosity for classes, functions, methods, etc.
type Verbosity = Literal[0, 1, 2]
# Severity tag written in front of log messages
type LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
# Mode for opening documents
type ReadMode = Literal["r"]
type WriteMode = Literal["w", "x"]
type OpenMode = Literal[ReadMode, WriteMode]
# Type alias for file/folder paths
type Address = Union[str, Path]
# Interval readings keyed by timestamp, NaN marks a missing value
type IntervalSeries = pd.Series
# One scalar per calendar date, keyed by ``datetime.date``
type DailyAggregate = pd.Series
# Calendar dates accepted wherever a holiday set is expected
type DateLike = Union[date, str, pd.Timestamp]
