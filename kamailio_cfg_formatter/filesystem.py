"""Reading and rewriting Kamailio configuration files on disk."""

from __future__ import annotations

import os
import stat
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from .constants import CFG_EXTENSIONS, DEFAULT_MAX_FILE_SIZE, DEFAULT_MAX_LINE_LENGTH
from .exceptions import LineTooLongError

MAX_FILE_SIZE_ENV_VAR = "KAMAILIO_CFG_FORMATTER_MAX_FILE_SIZE"
MAX_LINE_LENGTH_ENV_VAR = "KAMAILIO_CFG_FORMATTER_MAX_LINE_LENGTH"


class DocumentReadError(Exception):
    """Raised when a configuration file cannot be loaded."""


@dataclass(frozen=True)
class CfgDocument:
    """A configuration file read from disk, with the stats taken around the read.

    Attributes:
        path: Resolved path of the file.
        text: File content, line endings untouched.
        initial_stat: Stat taken before reading; its access time is restored
            after a rewrite.
        read_stat: Stat taken after reading; a rewrite is refused when the file
            no longer matches it.
    """

    path: Path
    text: str
    initial_stat: os.stat_result
    read_stat: os.stat_result


def _limit_from_env(env_var: str, default: int) -> int:
    raw_value = os.environ.get(env_var)
    if raw_value is None:
        return default

    try:
        limit = int(raw_value)
    except ValueError as error:
        raise ValueError(
            f"Invalid value for {env_var}: {raw_value} (expected positive integer)"
        ) from error

    if limit <= 0:
        raise ValueError(f"{env_var} must be a positive integer, got {limit}.")
    return limit


def get_max_file_size(default: int = DEFAULT_MAX_FILE_SIZE) -> int:
    """Return the file size limit in bytes, honouring the environment override.

    Raises:
        ValueError: If `KAMAILIO_CFG_FORMATTER_MAX_FILE_SIZE` is set to something
            other than a positive integer.
    """
    return _limit_from_env(MAX_FILE_SIZE_ENV_VAR, default)


def get_max_line_length(default: int = DEFAULT_MAX_LINE_LENGTH) -> int:
    """Return the line length limit, honouring the environment override.

    Raises:
        ValueError: If `KAMAILIO_CFG_FORMATTER_MAX_LINE_LENGTH` is set to
            something other than a positive integer.
    """
    return _limit_from_env(MAX_LINE_LENGTH_ENV_VAR, default)


def contains_symlink(path: Path) -> bool:
    """Tell whether `path` or one of its parents is a symbolic link."""
    for candidate in (path, *path.parents):
        try:
            if candidate.is_symlink():
                return True
        except OSError:
            continue
    return False


def resolve_cfg_path(raw_path: str, base_dir: Path) -> Path:
    """Turn a user-supplied path into a safe, absolute configuration file path.

    Args:
        raw_path: Path given on the command line.
        base_dir: Directory every processed file must live under.

    Returns:
        Path: Resolved path of an existing `.cfg` or `.inc` regular file.

    Raises:
        ValueError: If the path goes through a symlink, does not exist, is not
            a regular file, escapes `base_dir` or has another extension.

    Examples:
        resolve_cfg_path("kamailio.cfg", Path.cwd())
    """
    path = Path(raw_path).expanduser()
    if contains_symlink(path):
        raise ValueError(f"Symlinks are not supported for security reasons: {path}")

    try:
        resolved = path.resolve(strict=True)
    except FileNotFoundError as error:
        raise ValueError(f"{path} does not exist.") from error
    except OSError as error:
        raise ValueError(f"Error resolving {path}: {error}") from error

    if not resolved.is_file():
        raise ValueError(f"{resolved} is not a regular file.")
    if not resolved.is_relative_to(base_dir):
        raise ValueError(f"{resolved} is outside of the working directory {base_dir}.")
    if resolved.suffix.lower() not in CFG_EXTENSIONS:
        raise ValueError(
            f"{resolved} is not a Kamailio configuration file.\n"
            f"Supported extensions are: {', '.join(CFG_EXTENSIONS)}"
        )
    return resolved


def snapshot(filepath: Path) -> os.stat_result:
    """Stat a regular file without following symlinks.

    Raises:
        IOError: If the file is inaccessible, a symlink, or not a regular file.
    """
    try:
        stat_result = os.stat(filepath, follow_symlinks=False)
    except OSError as error:
        raise IOError(f"Error accessing {filepath}: {error}") from error

    if stat.S_ISLNK(stat_result.st_mode):
        raise IOError(f"Symlinks are not supported: {filepath}.")
    if not stat.S_ISREG(stat_result.st_mode):
        raise IOError(f"{filepath} is not a regular file.")
    return stat_result


def _fingerprint(stat_result: os.stat_result) -> tuple:
    return (
        getattr(stat_result, "st_ino", None),
        getattr(stat_result, "st_dev", None),
        stat_result.st_size,
        stat_result.st_mtime_ns,
    )


def ensure_unchanged(expected: os.stat_result, filepath: Path) -> os.stat_result:
    """Take a fresh snapshot and compare it with `expected`.

    Returns:
        os.stat_result: The fresh snapshot.

    Raises:
        IOError: If inode, device, size or modification time moved.
    """
    current = snapshot(filepath)
    if _fingerprint(current) != _fingerprint(expected):
        raise IOError(f"{filepath} changed during processing; refusing to overwrite.")
    return current


def check_line_lengths(text: str, max_line_length: int) -> None:
    """Raise `LineTooLongError` for the first line longer than the limit."""
    for line_number, line in enumerate(text.splitlines(), start=1):
        if len(line) > max_line_length:
            raise LineTooLongError(line_number, len(line), max_line_length)


def read_text(filepath: Path) -> str:
    """Read a file as UTF-8, keeping its line endings.

    Raises:
        DocumentReadError: If the file cannot be opened or decoded.
    """
    try:
        with open(filepath, "r", encoding="UTF-8", newline="") as stream:
            return stream.read()
    except UnicodeDecodeError as error:
        raise DocumentReadError(f"Invalid UTF-8 sequence in {filepath}: {error}") from error
    except OSError as error:
        raise DocumentReadError(f"Error accessing {filepath}: {error}") from error


def load_document(
    filepath: Path,
    max_file_size: int = DEFAULT_MAX_FILE_SIZE,
    max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
) -> CfgDocument:
    """Read a configuration file after checking it against the size limits.

    The file is stat-ed before and after reading; a file that moves in
    between is rejected.

    Args:
        filepath: Path returned by `resolve_cfg_path`.
        max_file_size: Largest accepted file size in bytes.
        max_line_length: Longest accepted line in characters.

    Returns:
        CfgDocument: Content and stats of the file.

    Raises:
        DocumentReadError: If the file is not a regular file, too large, not
            UTF-8, has an overlong line, or changed while it was read.

    Examples:
        document = load_document(Path("kamailio.cfg"), max_line_length=160)
    """
    try:
        initial_stat = snapshot(filepath)
    except IOError as error:
        raise DocumentReadError(str(error)) from error
    if initial_stat.st_size > max_file_size:
        raise DocumentReadError(
            f"{filepath} exceeds the maximum allowed size of {max_file_size} bytes."
        )

    text = read_text(filepath)
    try:
        check_line_lengths(text, max_line_length)
    except LineTooLongError as error:
        raise DocumentReadError(
            f"{filepath} contains a line at line {error.line_number} "
            f"exceeding the maximum allowed length of {error.max_line_length} characters."
        ) from error

    try:
        read_stat = ensure_unchanged(initial_stat, filepath)
    except IOError as error:
        raise DocumentReadError(str(error)) from error
    return CfgDocument(filepath, text, initial_stat, read_stat)


def save_document(
    document: CfgDocument,
    content: str,
    warn: Callable[[str], None] | None = None,
) -> None:
    """Replace the file behind `document` with `content` in one atomic step.

    Permissions and access time are carried over; ownership too when the
    process is allowed to change it, otherwise `warn` is called.

    Raises:
        IOError: If the file changed since it was loaded or the replacement
            failed.

    Examples:
        save_document(document, result.formatted, warn=print)
    """
    filepath = document.path
    ensure_unchanged(document.read_stat, filepath)

    mode = stat.S_IMODE(document.read_stat.st_mode)
    uid = getattr(document.read_stat, "st_uid", None)
    gid = getattr(document.read_stat, "st_gid", None)

    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="UTF-8",
            newline="",
            delete=False,
            dir=filepath.parent,
            prefix=f".{filepath.name}.",
        ) as stream:
            temp_path = Path(stream.name)
            stream.write(content)
            stream.flush()
            os.fsync(stream.fileno())

        os.chmod(temp_path, mode)
        if uid is not None and gid is not None and hasattr(os, "chown"):
            try:
                os.chown(temp_path, uid, gid)
            except PermissionError:
                if warn is not None:
                    warn(
                        f"Warning: Could not preserve file ownership for {filepath.name} "
                        "(requires elevated privileges)"
                    )

        os.replace(temp_path, filepath)
        temp_path = None
        os.utime(
            filepath,
            ns=(document.initial_stat.st_atime_ns, filepath.stat().st_mtime_ns),
        )
    finally:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
