"""
Invocation Resolution

Turns a verb's raw argument strings into an immutable :class:`Invocation`:
the leading numeric parameter (if any) is split off once, and every
remaining argument is canonicalized and checked to be a readable file.

Output names are derived from the input by cutting the file name at its
first period and inserting an operation tag:

    /data/run1.nii.gz  --(echoescombined)-->  /data/run1_echoescombined.nii.gz
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple

from .operations import OperationSpec

NUMBER_PATTERN = re.compile(r"^[0-9]+([.][0-9]+)?$")


class InputFileError(Exception):
    """Raised when a path argument is not an existing, readable file."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"File not found or not readable: {path}")


class UsageError(Exception):
    """Raised when arguments do not fit the operation's schema."""

    def __init__(self, spec: OperationSpec, reason: str = ""):
        self.spec = spec
        self.reason = reason
        super().__init__(spec.usage_line())


def is_number(value: str) -> bool:
    """True for plain decimals such as ``10`` or ``2.5`` (no sign, no exponent)."""
    return bool(NUMBER_PATTERN.match(value))


def split_image_name(path: str) -> Tuple[str, str]:
    """
    Split a path into its extension-less stem and full extension.

    Only the file name is searched for the first period, so dotted
    directories are left alone.

    Examples
    --------
    >>> split_image_name("/d/scan.nii.gz")
    ('/d/scan', '.nii.gz')
    >>> split_image_name("/d.v2/scan")
    ('/d.v2/scan', '')
    """
    directory, name = os.path.split(path)
    idx = name.find(".")
    if idx == -1:
        return path, ""
    return os.path.join(directory, name[:idx]), name[idx:]


def number_tag(value: str) -> str:
    """Render a numeric parameter for use inside a file name."""
    return value.replace(".", "_")


def derive_output(
    path: str,
    tag: str,
    number: Optional[str] = None,
    ext: Optional[str] = None,
) -> str:
    """
    Derive an output path as ``{stem}_{tag}{number}{ext}``.

    Parameters
    ----------
    path : str
        Input file
    tag : str
        Operation tag, e.g. ``"tmean"``
    number : str, optional
        Numeric parameter appended to the tag (``.`` becomes ``_``)
    ext : str, optional
        Replacement extension (defaults to the input's)

    Returns
    -------
    str
        Output path in the input's directory
    """
    stem, in_ext = split_image_name(path)
    suffix = tag + (number_tag(number) if number is not None else "")
    return f"{stem}_{suffix}{in_ext if ext is None else ext}"


# Other half of a two-file image
PAIR_COMPANIONS = {
    ".hdr": ".img",
    ".img": ".hdr",
    ".hdr.gz": ".img.gz",
    ".img.gz": ".hdr.gz",
}


def _readable_file(path: str) -> bool:
    return Path(path).is_file() and os.access(path, os.R_OK)


def canonicalize_path(arg: str) -> str:
    """
    Resolve symlinks and make absolute; the result must be a readable file.

    For ``.hdr``/``.img`` pairs the other half must be readable too.
    """
    resolved = os.path.realpath(arg)
    if not _readable_file(resolved):
        raise InputFileError(arg)
    stem, ext = split_image_name(resolved)
    companion = PAIR_COMPANIONS.get(ext)
    if companion and not _readable_file(stem + companion):
        raise InputFileError(arg)
    return resolved


@dataclass(frozen=True)
class Invocation:
    """A fully resolved call: operation, numeric parameter and input files."""
    spec: OperationSpec
    files: Tuple[str, ...]
    number: Optional[str] = None

    @property
    def value(self) -> Optional[float]:
        """Numeric parameter as a float."""
        return float(self.number) if self.number is not None else None

    @property
    def reference(self) -> str:
        """First file, for operations that consume a reference or mask."""
        return self.files[0]


def resolve_invocation(spec: OperationSpec, args: Sequence[str]) -> Invocation:
    """
    Build an :class:`Invocation` from the arguments following the verb.

    The first argument is the numeric parameter if and only if it matches
    :data:`NUMBER_PATTERN`; all other arguments are treated as files.

    Raises
    ------
    InputFileError
        For the first argument that is not a readable file
    """
    number = None
    paths = list(args)
    if paths and is_number(paths[0]):
        number = paths.pop(0)

    files = tuple(canonicalize_path(p) for p in paths)
    return Invocation(spec=spec, files=files, number=number)
