"""
Voxelwise and Temporal Arithmetic

Thin wrappers around ``fslmaths``. Each function writes one image next to
its input, named by :func:`derive_output`, and returns the output path.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from ..io import fsl_io
from .invocation import derive_output, split_image_name

logger = logging.getLogger(__name__)


def fslmaths(
    input_image: str,
    args: Sequence[str],
    output: str,
    odt: Optional[str] = None,
) -> str:
    """Run ``fslmaths <input> <args...> <output> [-odt <odt>]``."""
    cmd = ["fslmaths", input_image, *args, output]
    if odt:
        cmd.extend(["-odt", odt])
    fsl_io.run_fsl(cmd, output=output)
    return output


def remove_image(path: str):
    """Delete an image, including the .img half of an Analyze pair."""
    stem, ext = split_image_name(path)
    candidates = [Path(path)]
    if ext.startswith(".hdr"):
        candidates.append(Path(stem + ext.replace(".hdr", ".img", 1)))
    for candidate in candidates:
        if candidate.exists():
            logger.debug("Removing intermediate %s", candidate)
            candidate.unlink()


@contextmanager
def intermediates(keep: bool = False) -> Iterator[List[str]]:
    """
    Collect intermediate images and delete them once the block succeeds.

    Files are left in place if the block raises, so a failed composite
    step can be inspected.
    """
    created: List[str] = []
    yield created
    if keep:
        return
    for path in created:
        remove_image(path)


def temporal_mean(image: str, output: Optional[str] = None) -> str:
    return fslmaths(image, ["-Tmean"], output or derive_output(image, "tmean"))


def temporal_std(image: str, output: Optional[str] = None) -> str:
    return fslmaths(image, ["-Tstd"], output or derive_output(image, "tstd"))


def temporal_max(image: str) -> str:
    return fslmaths(image, ["-Tmax"], derive_output(image, "tmax"))


def temporal_min(image: str) -> str:
    return fslmaths(image, ["-Tmin"], derive_output(image, "tmin"))


def temporal_snr(image: str, keep_intermediates: bool = False) -> str:
    """Temporal SNR map: temporal mean divided by temporal std."""
    output = derive_output(image, "tsnr")
    with intermediates(keep_intermediates) as tmp:
        mean = temporal_mean(image)
        tmp.append(mean)
        std = temporal_std(image)
        tmp.append(std)
        fslmaths(mean, ["-div", std], output)
    return output


def binarize(image: str) -> str:
    return fslmaths(image, ["-bin"], derive_output(image, "bin"))


def remove_nans(image: str) -> str:
    return fslmaths(image, ["-nan"], derive_output(image, "nonan"))


def absolute(image: str) -> str:
    return fslmaths(image, ["-abs"], derive_output(image, "abs"))


def lower_threshold(image: str, threshold: str) -> str:
    """Zero everything below ``threshold``."""
    return fslmaths(image, ["-thr", threshold], derive_output(image, "lthresh", threshold))


def upper_threshold(image: str, threshold: str) -> str:
    """Zero everything above ``threshold``."""
    return fslmaths(image, ["-uthr", threshold], derive_output(image, "uthresh", threshold))


def apply_mask(image: str, mask: str, output: Optional[str] = None) -> str:
    return fslmaths(image, ["-mas", mask], output or derive_output(image, "masked"))


def combine_echoes(echoes: Sequence[str]) -> str:
    """
    Average multi-echo images voxelwise.

    Parameters
    ----------
    echoes : sequence of str
        Echo images with identical geometry; the first names the output

    Returns
    -------
    str
        ``{first}_echoescombined`` image
    """
    output = derive_output(echoes[0], "echoescombined")
    args: List[str] = []
    for echo in echoes[1:]:
        args.extend(["-add", echo])
    args.extend(["-div", str(len(echoes))])
    return fslmaths(echoes[0], args, output)
