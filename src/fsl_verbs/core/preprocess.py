"""
Preprocessing Operations

Motion correction, registration, brain extraction, intensity
normalization, SUSAN smoothing and temporal high-pass filtering.

Composite steps reuse the simpler operations directly, so intermediates
carry the same names a standalone call would produce (``_tmean``,
``_brain``, ``_brain_mask``) and are removed once the step succeeds.

Unit conversions:

    sigma_mm   = FWHM / (2 * sqrt(2 * ln 2))
    sigma_vols = 1 / (2 * cutoff_hz * TR)
"""

import logging
import math
from typing import List, Sequence

from ..io import fsl_io, images
from .invocation import derive_output
from .maths import apply_mask, fslmaths, intermediates, temporal_mean

logger = logging.getLogger(__name__)

FWHM_TO_SIGMA = 1.0 / (2.0 * math.sqrt(2.0 * math.log(2.0)))


def _num(value: float) -> str:
    """Format a float for an FSL command line."""
    return f"{value:.6g}"


def fwhm_to_sigma(fwhm: float) -> float:
    """Convert a Gaussian FWHM to its standard deviation."""
    return fwhm * FWHM_TO_SIGMA


def cutoff_to_sigma_volumes(cutoff: float, tr: float) -> float:
    """
    Convert a high-pass cutoff frequency to the ``-bptf`` sigma in volumes.

    Parameters
    ----------
    cutoff : float
        Cutoff frequency in Hz, e.g. 0.01 (a 100 s period)
    tr : float
        Repetition time in seconds

    Returns
    -------
    float
        Half-width of the filter in volumes
    """
    if tr <= 0:
        raise ValueError(f"Repetition time must be positive, got {tr}")
    if cutoff <= 0:
        raise ValueError(f"Cutoff frequency must be positive, got {cutoff}")
    return 1.0 / (2.0 * cutoff * tr)


def motion_correct(image: str) -> str:
    """Run mcflirt; writes ``{stem}_mcf`` plus ``{stem}_mcf.par``."""
    output = derive_output(image, "mcf")
    out_stem = derive_output(image, "mcf", ext="")
    fsl_io.run_fsl(["mcflirt", "-in", image, "-out", out_stem, "-plots"], output=output)
    return output


def motion_correct_multi_echo(echoes: Sequence[str]) -> List[str]:
    """
    Motion-correct multi-echo data with parameters estimated on echo 1.

    mcflirt saves per-volume matrices for the first echo, and applyxfm4D
    applies them to every other echo so all echoes share one realignment.

    Parameters
    ----------
    echoes : sequence of str
        Echo images in echo order

    Returns
    -------
    list of str
        ``{stem}_mcf`` image for each echo, in input order
    """
    first = echoes[0]
    first_out = derive_output(first, "mcf")
    first_stem = derive_output(first, "mcf", ext="")
    fsl_io.run_fsl(
        ["mcflirt", "-in", first, "-out", first_stem, "-mats", "-plots"],
        output=first_out,
    )
    mats_dir = first_stem + ".mat"

    outputs = [first_out]
    for echo in echoes[1:]:
        out = derive_output(echo, "mcf")
        logger.info("Applying echo-1 transforms to %s", echo)
        fsl_io.run_fsl(["applyxfm4D", echo, echo, out, mats_dir, "-fourdigit"], output=out)
        outputs.append(out)
    return outputs


def register(image: str, reference: str, dof: int = 12) -> str:
    """Affine registration with flirt; also saves ``{stem}_reg.mat``."""
    output = derive_output(image, "reg")
    matrix = derive_output(image, "reg", ext=".mat")
    fsl_io.run_fsl([
        "flirt", "-in", image, "-ref", reference,
        "-out", output, "-omat", matrix,
        "-dof", str(dof),
    ], output=output)
    return output


def brain_mask_path(image: str) -> str:
    """Mask written alongside :func:`brain_extract` output."""
    return derive_output(image, "brain_mask")


def brain_extract(image: str, frac: float = 0.5, keep_intermediates: bool = False) -> str:
    """
    Skull-strip an image with bet.

    3D images go straight through bet. For 4D images bet runs on the
    temporal mean to produce a mask, which is then applied to every volume.

    Parameters
    ----------
    image : str
        Input image (3D or 4D)
    frac : float
        Fractional intensity threshold
    keep_intermediates : bool
        Keep the temporal mean of 4D inputs

    Returns
    -------
    str
        ``{stem}_brain`` image; ``{stem}_brain_mask`` is written as well
    """
    output = derive_output(image, "brain")
    mask = brain_mask_path(image)

    if images.n_volumes(image) > 1:
        with intermediates(keep_intermediates) as tmp:
            mean = temporal_mean(image)
            tmp.append(mean)
            # -n: mask only; bet names it after the output stem
            fsl_io.run_fsl(["bet", mean, output, "-f", _num(frac), "-m", "-n"], output=output)
            apply_mask(image, mask, output)
    else:
        fsl_io.run_fsl(["bet", image, output, "-f", _num(frac), "-m"], output=output)
    return output


def _brain_median(image: str, mask: str) -> float:
    median = fsl_io.fslstats(image, "-p", "50", mask=mask)[0]
    if median <= 0:
        raise ValueError(f"Median intensity within brain mask of {image} is {median}")
    return median


def normalize_intensity(
    image: str,
    target: float = 10000.0,
    frac: float = 0.5,
    keep_intermediates: bool = False,
) -> str:
    """
    Scale an image so its median brain intensity equals ``target``.

    Returns
    -------
    str
        ``{stem}_norm`` image (float)
    """
    output = derive_output(image, "norm")
    with intermediates(keep_intermediates) as tmp:
        brain = brain_extract(image, frac, keep_intermediates)
        tmp.extend([brain, brain_mask_path(image)])

        median = _brain_median(image, brain_mask_path(image))
        scale = target / median
        logger.info("%s: brain median %.4g, scale %.6g", image, median, scale)
        fslmaths(image, ["-mul", _num(scale)], output, odt="float")
    return output


def smooth(
    image: str,
    fwhm: str,
    bt_factor: float = 0.75,
    frac: float = 0.5,
    keep_intermediates: bool = False,
) -> str:
    """
    SUSAN smoothing with a brightness threshold from the brain median.

    Parameters
    ----------
    image : str
        Input image (3D or 4D)
    fwhm : str
        Smoothing FWHM in mm, as given on the command line
    bt_factor : float
        Brightness threshold as a fraction of the median brain intensity
    frac : float
        BET fractional intensity used for the brain mask
    keep_intermediates : bool
        Keep brain, mask and temporal mean

    Returns
    -------
    str
        ``{stem}_smooth{fwhm}`` image, masked to the brain
    """
    output = derive_output(image, "smooth", fwhm)
    sigma = fwhm_to_sigma(float(fwhm))

    with intermediates(keep_intermediates) as tmp:
        brain = brain_extract(image, frac, keep_intermediates)
        mask = brain_mask_path(image)
        tmp.extend([brain, mask])

        bt = bt_factor * _brain_median(image, mask)

        # 4D data uses its temporal mean as the USAN image
        if images.n_volumes(image) > 1:
            mean = temporal_mean(image)
            tmp.append(mean)
            usans = ["1", mean, _num(bt)]
        else:
            usans = ["0"]

        fsl_io.run_fsl([
            "susan", image, _num(bt), _num(sigma), "3", "1", *usans, output,
        ], output=output)
        apply_mask(output, mask, output)
    return output


def highpass(image: str, cutoff: str, keep_intermediates: bool = False) -> str:
    """
    Temporal high-pass filter with ``fslmaths -bptf``, re-adding the mean.

    Parameters
    ----------
    image : str
        4D input image
    cutoff : str
        Cutoff frequency in Hz, as given on the command line

    Returns
    -------
    str
        ``{stem}_hp{cutoff}`` image
    """
    tr = images.repetition_time(image)
    sigma = cutoff_to_sigma_volumes(float(cutoff), tr)
    output = derive_output(image, "hp", cutoff)
    logger.info("%s: TR %.4g s, sigma %.4g volumes", image, tr, sigma)

    with intermediates(keep_intermediates) as tmp:
        mean = temporal_mean(image)
        tmp.append(mean)
        fslmaths(image, ["-bptf", _num(sigma), "-1", "-add", mean], output)
    return output
