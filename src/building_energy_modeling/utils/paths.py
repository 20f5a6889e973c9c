# stdlib
from pathlib import Path
from datetime import datetime
from typing import Optional
# projectlib
from building_energy_modeling.utils.typing import Address, OpenMode

def unique_path(path: Path) -> Path:
    """
    Return ``path``, or a timestamped sibling if ``path`` already exists.

    ``out.csv`` becomes ``out_20141225_154500.csv``; a counter is
    appended when that name is taken too.
    """
    if not path.exists():
        return path
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    candidate = path.with_name(f"{path.stem}_{stamp}{path.suffix}")
    n = 1
    while candidate.exists():
        candidate = path.with_name(f"{path.stem}_{stamp}_{n}{path.suffix}")
        n += 1
    return candidate


def validate_address(
    address: Address,
    *,
    extension: Optional[str] = ".csv",
    mode: OpenMode = 'r',
    mkdir: bool = False,
) -> Path:
    """
    Resolve a file or directory path for reading or writing.

    Directories are returned as is (after creation when ``mkdir`` is
    set). File paths must live in an existing directory; their suffix is
    forced to ``extension`` unless that is ``None``, since LBNL inputs
    arrive with whatever name their supplier gave them.

    Parameters
    ----------
    address : Address
        File or directory path.
    extension : str or None, default ".csv"
        Suffix enforced on file paths, ``None`` to keep any suffix.
    mode : OpenMode, default "r"
        - ``"r"``: the file must exist
        - ``"w"``: an existing file is never overwritten, a timestamped
          sibling path is returned instead
        - ``"x"``: an existing file raises ``FileExistsError``
    mkdir : bool, default False
        Create ``address`` as a directory (with parents) first.

    Returns
    -------
    pathlib.Path
        Path safe to use for the intended mode.

    Raises
    ------
    NotADirectoryError
        If the parent directory of a file path does not exist.
    FileNotFoundError
        If ``mode="r"`` and the file does not exist.
    FileExistsError
        If ``mode="x"`` and the file already exists.
    """
    path = Path(address)
    if mkdir:
        path.mkdir(parents=True, exist_ok=True)
    if path.is_dir():
        return path
    if not path.parent.is_dir():
        raise NotADirectoryError(
            f"Address path {path.parent} does not exist or is not a "
            "directory."
        )
    if extension is not None and path.suffix != extension:
        path = path.with_suffix(extension)
    match mode:
        case "r" if not path.is_file():
            raise FileNotFoundError(f"{path} is not a file or does not exist.")
        case "x" if path.exists():
            raise FileExistsError(f"{path} already exists.")
        case "w":
            path = unique_path(path)
    return path
