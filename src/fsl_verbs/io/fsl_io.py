"""
FSL command execution utilities.

Every FSL program is launched through :func:`run_fsl`, which resolves the
binary under ``$FSLDIR/bin``, selects ``FSLOUTPUTTYPE`` from the output file
extension and turns a non-zero exit status into :class:`FSLCommandError`.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

# Multi-part extensions must be checked before their single-part suffixes
FSL_OUTPUT_TYPES = {
    ".nii.gz": "NIFTI_GZ",
    ".hdr.gz": "NIFTI_PAIR_GZ",
    ".img.gz": "NIFTI_PAIR_GZ",
    ".nii": "NIFTI",
    ".hdr": "NIFTI_PAIR",
    ".img": "NIFTI_PAIR",
}


class FSLCommandError(RuntimeError):
    """Raised when an FSL program exits with a non-zero status."""

    def __init__(self, cmd: List[str], returncode: int, stderr: str = ""):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"Command failed ({returncode}): {' '.join(self.cmd)}"
            + (f"\nstderr: {stderr.strip()}" if stderr.strip() else "")
        )


class FSLNotFoundError(RuntimeError):
    """Raised when an FSL program cannot be launched because it is not installed."""

    def __init__(self, program: str):
        self.program = program
        super().__init__(f"Program not found: {program} (is FSL installed and FSLDIR set?)")


def fsl_binary(name: str) -> str:
    """Resolve an FSL program name, preferring ``$FSLDIR/bin``."""
    fsldir = os.environ.get("FSLDIR")
    if fsldir:
        candidate = Path(fsldir) / "bin" / name
        if candidate.is_file():
            return str(candidate)
    return name


def output_type_for(path: str) -> Optional[str]:
    """Map an image file name to the matching ``FSLOUTPUTTYPE`` value."""
    name = Path(path).name
    for ext, output_type in FSL_OUTPUT_TYPES.items():
        if name.endswith(ext):
            return output_type
    return None


def run_fsl(cmd: List[str], output: Optional[str] = None) -> subprocess.CompletedProcess:
    """
    Run an FSL command and wait for it to finish.

    Parameters
    ----------
    cmd : list of str
        Program name followed by its arguments
    output : str, optional
        Output image; its extension selects ``FSLOUTPUTTYPE``

    Returns
    -------
    subprocess.CompletedProcess
        Completed process with captured text stdout/stderr

    Raises
    ------
    FSLCommandError
        If the program exits with a non-zero status
    FSLNotFoundError
        If the program cannot be found
    """
    cmd = [fsl_binary(cmd[0])] + [str(c) for c in cmd[1:]]

    env = None
    output_type = output_type_for(output) if output else None
    if output_type:
        env = dict(os.environ, FSLOUTPUTTYPE=output_type)

    logger.debug("Running: %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, env=env, check=False)
    except FileNotFoundError as e:
        raise FSLNotFoundError(cmd[0]) from e

    if result.stderr and result.stderr.strip():
        logger.debug("%s stderr: %s", cmd[0], result.stderr.strip())
    if result.returncode != 0:
        raise FSLCommandError(cmd, result.returncode, result.stderr or "")
    return result


def fslstats(image: str, *options: str, mask: Optional[str] = None) -> List[float]:
    """
    Run ``fslstats`` and parse its whitespace-separated numeric output.

    Parameters
    ----------
    image : str
        Input image
    *options : str
        fslstats options, e.g. ``"-p", "50"``
    mask : str, optional
        Mask image passed with ``-k`` before the options

    Returns
    -------
    list of float
        Values in the order fslstats prints them
    """
    cmd = ["fslstats", image]
    if mask:
        cmd.extend(["-k", mask])
    cmd.extend(options)

    result = run_fsl(cmd)
    return [float(x) for x in result.stdout.split()]
