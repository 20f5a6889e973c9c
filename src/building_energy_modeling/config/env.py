# stdlib
import os
from pathlib import Path
from typing import Optional
# thirdpartylib
from dotenv import load_dotenv

def fetch_var(name: str, default: Optional[str] = None) -> Optional[str]:
    """
    Fetch an environment variable, falling back to ``default``.

    A variable that is set but empty is treated as a configuration
    mistake rather than silently replaced.
    """
    try:
        value = os.environ[name].strip()
        if not value:
            raise RuntimeError(
                f"Environment variable '{name}' is empty."
            )
        return value
    except KeyError:
        return default


def fetch_int(name: str, default: int) -> int:
    """Fetch an integer environment variable or fail loudly."""
    value = fetch_var(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as e:
        raise RuntimeError(
            f"Environment variable '{name}' must be an integer, "
            f"got {value!r}."
        ) from e


# Load env variables
load_dotenv()

LOG_DIR = Path(fetch_var("LAG_MODEL_LOG_DIR", str(Path.cwd())))
VERBOSITY = fetch_int("LAG_MODEL_VERBOSITY", 0)
N_JOBS = fetch_int("LAG_MODEL_N_JOBS", 1)
