"""
Image header and voxel access through nibabel.
"""

from typing import Tuple

import nibabel as nib
import numpy as np
from nibabel.filebasedimages import ImageFileError


def load_image(image: str):
    """Load an image with nibabel; files it cannot read raise ValueError."""
    try:
        return nib.load(image)
    except ImageFileError as e:
        raise ValueError(f"Not a readable image: {image}") from e


def image_shape(image: str) -> Tuple[int, ...]:
    """Get image dimensions."""
    return tuple(int(x) for x in load_image(image).shape)


def n_volumes(image: str) -> int:
    """Number of volumes along the fourth axis (1 for 3D images)."""
    shape = image_shape(image)
    if len(shape) < 4:
        return 1
    return shape[3]


def repetition_time(image: str) -> float:
    """
    Repetition time in seconds, read from the fourth pixdim.

    Raises
    ------
    ValueError
        If the image is not 4D or carries no positive TR
    """
    img = load_image(image)
    zooms = img.header.get_zooms()
    if len(zooms) < 4 or zooms[3] <= 0:
        raise ValueError(f"No repetition time in header of {image}")

    tr = float(zooms[3])
    # xyzt_units may declare milliseconds
    units = img.header.get_xyzt_units()[1] if hasattr(img.header, "get_xyzt_units") else "sec"
    if units == "msec":
        tr /= 1000.0
    return tr


def nonzero_voxels(image: str) -> np.ndarray:
    """Flattened finite, non-zero voxel values across all volumes."""
    data = load_image(image).get_fdata()
    values = data[np.isfinite(data)]
    return values[values != 0]
