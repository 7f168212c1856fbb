"""
Volume Layout Operations

Merging, splitting and reorienting images with fslmerge, fslsplit,
fslroi and fslreorient2std.
"""

import glob
from pathlib import Path
from typing import List, Sequence

from ..io import fsl_io
from .invocation import derive_output, split_image_name


def merge(images: Sequence[str], axis: str = "a", tag: str = "merged") -> str:
    """
    Merge images into one with ``fslmerge``.

    Parameters
    ----------
    images : sequence of str
        Input images; the first names the output
    axis : str
        fslmerge axis flag without the dash (``a`` auto, ``t`` time, ...)
    tag : str
        Output tag

    Returns
    -------
    str
        Merged image path
    """
    output = derive_output(images[0], tag)
    fsl_io.run_fsl(["fslmerge", f"-{axis}", output, *images], output=output)
    return output


def concat_time(images: Sequence[str]) -> str:
    """Concatenate images along time."""
    return merge(images, axis="t", tag="tmerged")


def split_volumes(image: str) -> List[str]:
    """
    Split a 4D image into ``{stem}_vol0000...`` 3D images.

    Returns
    -------
    list of str
        Volume images in index order
    """
    stem, ext = split_image_name(image)
    prefix = f"{stem}_vol"
    fsl_io.run_fsl(["fslsplit", image, prefix, "-t"], output=image)

    parent = Path(prefix).parent
    pattern = glob.escape(Path(prefix).name) + "[0-9][0-9][0-9][0-9]" + glob.escape(ext)
    return [str(p) for p in sorted(parent.glob(pattern))]


def extract_volume(image: str, index: int) -> str:
    """Extract the volume at zero-based ``index``."""
    output = derive_output(image, "vol", str(index))
    fsl_io.run_fsl(["fslroi", image, output, str(index), "1"], output=output)
    return output


def reorient_to_std(image: str) -> str:
    output = derive_output(image, "reoriented")
    fsl_io.run_fsl(["fslreorient2std", image, output], output=output)
    return output
