import re
from pathlib import PurePosixPath
from typing import NamedTuple, Optional

FORBIDDEN_CHARS = '/\\?%*:|"<>[]#^'
DEFAULT_EXTENSION = ".md"

_SANITIZE = re.compile("[" + re.escape(FORBIDDEN_CHARS) + "]")
_NAME_WITH_ID = re.compile(r"^(.*) - (\d+)$")


class ProjectName(NamedTuple):
    name: str
    id: Optional[str]


def sanitize(name: str) -> str:
    return _SANITIZE.sub("-", name)


def to_file_name(name: str, project_id: Optional[str] = None, directory: str = "", ext: str = DEFAULT_EXTENSION) -> str:
    """``Groceries`` + ``456`` -> ``<directory>/Groceries - 456.md``."""
    base = sanitize(name)
    if project_id:
        base = f"{base} - {project_id}"
    file_name = base + ext
    return str(PurePosixPath(directory) / file_name) if directory else file_name


def from_file_name(base_name: str, ext: str = DEFAULT_EXTENSION) -> ProjectName:
    """Inverse of ``to_file_name``; a non-numeric suffix stays part of the name."""
    stem = PurePosixPath(base_name).name
    if ext and stem.endswith(ext):
        stem = stem[: -len(ext)]
    match = _NAME_WITH_ID.match(stem)
    if match:
        return ProjectName(match.group(1), match.group(2))
    return ProjectName(stem, None)
