import logging
import re
from functools import cache
from pathlib import Path

logger = logging.getLogger(__name__)

APP_FILE = "site_app.py"
DOT_DIR = ".sitedeploy"
USER_STAGE_FILE = "userstage"

_INVALID_STAGE_CHARS = re.compile(r"[^a-z0-9-]+")


@cache
def get_project_root() -> Path:
    """Find and cache the project root by looking for site_app.py.
    Raises ValueError if not found.
    """
    current = Path.cwd().resolve()
    while current != current.parent:
        if (current / APP_FILE).exists():
            return current
        current = current.parent

    raise ValueError(f"Could not find project root: no {APP_FILE} found in parent directories")


def get_dot_sitedeploy_dir() -> Path:
    return get_project_root() / DOT_DIR


def normalize_stage(name: str) -> str:
    """Turn an arbitrary name (usually the OS user) into a stage usable in bucket names.

    Bucket names only allow lowercase letters, digits, hyphens and dots; dots are
    replaced too since they break virtual-hosted TLS for the bucket endpoint.
    """
    stage = _INVALID_STAGE_CHARS.sub("-", name.lower()).strip("-")
    if not stage:
        raise ValueError(f"Cannot derive a stage name from {name!r}")
    return stage


def _read_metadata_file(filename: str) -> str | None:
    file_path = get_dot_sitedeploy_dir() / filename
    if file_path.is_file():
        return file_path.read_text().strip() or None
    return None


def _write_metadata_file(filename: str, content: str) -> None:
    dot_dir = get_dot_sitedeploy_dir()
    dot_dir.mkdir(exist_ok=True, parents=True)
    try:
        (dot_dir / filename).write_text(content)
        logger.debug("Saved %s: %s", filename, content)
    except OSError:
        logger.exception("Failed to write %s/%s", DOT_DIR, filename)


def get_user_stage() -> str | None:
    return _read_metadata_file(USER_STAGE_FILE)


def save_user_stage(stage: str) -> None:
    _write_metadata_file(USER_STAGE_FILE, stage)
