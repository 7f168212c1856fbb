"""
Analysis and Query Operations

ICA, FDR thresholds, cluster tables, cross-correlation, header queries
and simple voxel statistics. Apart from ICA these print values instead
of writing images.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from ..io import fsl_io, images
from .invocation import split_image_name

logger = logging.getLogger(__name__)


def _lines(text: str) -> List[str]:
    """Non-empty lines of tool output, trailing whitespace removed."""
    return [line.rstrip() for line in text.splitlines() if line.strip()]


def ica(image: str, dims: Optional[int] = None, report: bool = True) -> str:
    """
    Single-session ICA with melodic.

    Parameters
    ----------
    image : str
        4D input image
    dims : int, optional
        Number of components (melodic estimates it when omitted)
    report : bool
        Generate melodic's HTML report

    Returns
    -------
    str
        ``{stem}.ica`` output directory
    """
    out_dir = split_image_name(image)[0] + ".ica"
    cmd = ["melodic", "-i", image, "-o", out_dir]
    if dims is not None:
        cmd.extend(["-d", str(dims)])
    if report:
        cmd.append("--report")
    fsl_io.run_fsl(cmd)
    return out_dir


def fdr(pimage: str, q: float = 0.05) -> List[str]:
    """FDR probability threshold for a p-value image, as printed by ``fdr``."""
    return _lines(fsl_io.run_fsl(["fdr", "-i", pimage, "-q", f"{q:g}"]).stdout)


def cluster_table(image: str, threshold: str) -> List[str]:
    """Cluster table (tab-separated) for voxels above ``threshold``."""
    return _lines(fsl_io.run_fsl(["cluster", "-i", image, "-t", threshold]).stdout)


def cross_correlate(reference: str, image: str) -> List[str]:
    """Volume-by-volume correlation of ``image`` against ``reference``."""
    return _lines(fsl_io.run_fsl(["fslcc", reference, image]).stdout)


def header(image: str) -> List[str]:
    return _lines(fsl_io.run_fsl(["fslhd", image]).stdout)


def info(image: str) -> List[str]:
    return _lines(fsl_io.run_fsl(["fslinfo", image]).stdout)


def voxel_mean(image: str) -> float:
    """Mean of finite non-zero voxels."""
    values = images.nonzero_voxels(image)
    if values.size == 0:
        return 0.0
    return float(np.mean(values))


def voxel_std(image: str) -> float:
    """Sample standard deviation of finite non-zero voxels."""
    values = images.nonzero_voxels(image)
    if values.size < 2:
        return 0.0
    return float(np.std(values, ddof=1))


def format_value(value: float) -> str:
    return f"{value:.6f}"


def view(files: Sequence[str], viewer: str = "fsleyes"):
    """Open images in the viewer and wait for it to exit."""
    logger.info("Opening %d image(s) in %s", len(files), viewer)
    fsl_io.run_fsl([viewer, *files])
