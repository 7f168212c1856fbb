"""
Operation Dispatch

Maps every :class:`Operation` to a handler. Handlers are generators that
yield one stdout line at a time, so each output path is printed as soon
as it exists:

  * per-image handlers yield one line per input, in input order
  * group handlers (merge, combine, multi-echo moco, view) make a single
    pass over all inputs
  * reference handlers treat the first file as reference/mask
"""

import logging
from typing import Callable, Dict, Iterator

from ..config import Config
from ..io import images
from . import analysis, maths, preprocess, volumes
from .invocation import Invocation, UsageError
from .operations import Operation, NumberRole

logger = logging.getLogger(__name__)

Handler = Callable[[Invocation, Config], Iterator[str]]

# Numeric parameters that must be whole numbers
INTEGER_PARAMETERS = {Operation.VOLUME, Operation.ALIGN, Operation.ICA}

ALIGN_DOFS = {"6", "7", "9", "12"}


def check_arguments(invocation: Invocation):
    """
    Check an invocation against its operation's argument schema.

    Raises
    ------
    UsageError
        If the numeric parameter or file count does not fit
    """
    spec = invocation.spec
    number = invocation.number

    if spec.number is NumberRole.REQUIRED and number is None:
        raise UsageError(spec, "missing numeric parameter")
    if spec.number is NumberRole.NONE and number is not None:
        raise UsageError(spec, f"unexpected numeric parameter {number}")
    if len(invocation.files) < spec.min_files:
        raise UsageError(spec, f"needs at least {spec.min_files} image(s)")
    if number is not None and spec.operation in INTEGER_PARAMETERS and not number.isdigit():
        raise UsageError(spec, f"{number} is not a whole number")
    if spec.operation is Operation.ALIGN and number is not None and number not in ALIGN_DOFS:
        raise UsageError(spec, f"dof must be one of {', '.join(sorted(ALIGN_DOFS, key=int))}")


# ---------------------------------------------------------------------------
# Per-image arithmetic
# ---------------------------------------------------------------------------

def _tmean(invocation, config):
    for image in invocation.files:
        yield maths.temporal_mean(image)


def _tstd(invocation, config):
    for image in invocation.files:
        yield maths.temporal_std(image)


def _tmax(invocation, config):
    for image in invocation.files:
        yield maths.temporal_max(image)


def _tmin(invocation, config):
    for image in invocation.files:
        yield maths.temporal_min(image)


def _tsnr(invocation, config):
    for image in invocation.files:
        yield maths.temporal_snr(image, config.keep_intermediates)


def _bin(invocation, config):
    for image in invocation.files:
        yield maths.binarize(image)


def _nan(invocation, config):
    for image in invocation.files:
        yield maths.remove_nans(image)


def _abs(invocation, config):
    for image in invocation.files:
        yield maths.absolute(image)


def _lthresh(invocation, config):
    for image in invocation.files:
        yield maths.lower_threshold(image, invocation.number)


def _uthresh(invocation, config):
    for image in invocation.files:
        yield maths.upper_threshold(image, invocation.number)


def _mask(invocation, config):
    mask = invocation.reference
    for image in invocation.files[1:]:
        yield maths.apply_mask(image, mask)


def _combine(invocation, config):
    yield maths.combine_echoes(invocation.files)


# ---------------------------------------------------------------------------
# Volume layout
# ---------------------------------------------------------------------------

def _merge(invocation, config):
    yield volumes.merge(invocation.files)


def _tmerge(invocation, config):
    yield volumes.concat_time(invocation.files)


def _split(invocation, config):
    for image in invocation.files:
        yield from volumes.split_volumes(image)


def _volume(invocation, config):
    index = int(invocation.number)
    for image in invocation.files:
        yield volumes.extract_volume(image, index)


def _reorient(invocation, config):
    for image in invocation.files:
        yield volumes.reorient_to_std(image)


# ---------------------------------------------------------------------------
# Preprocessing
# ---------------------------------------------------------------------------

def _moco(invocation, config):
    for image in invocation.files:
        yield preprocess.motion_correct(image)


def _moco_me(invocation, config):
    yield from preprocess.motion_correct_multi_echo(invocation.files)


def _align(invocation, config):
    dof = int(invocation.number) if invocation.number is not None else 12
    reference = invocation.reference
    for image in invocation.files[1:]:
        yield preprocess.register(image, reference, dof)


def _bet(invocation, config):
    frac = invocation.value if invocation.number is not None else config.bet_frac
    for image in invocation.files:
        yield preprocess.brain_extract(image, frac, config.keep_intermediates)


def _norm(invocation, config):
    target = invocation.value if invocation.number is not None else config.norm_target
    for image in invocation.files:
        yield preprocess.normalize_intensity(
            image, target, config.bet_frac, config.keep_intermediates
        )


def _smooth(invocation, config):
    for image in invocation.files:
        yield preprocess.smooth(
            image, invocation.number,
            bt_factor=config.susan_bt_factor,
            frac=config.bet_frac,
            keep_intermediates=config.keep_intermediates,
        )


def _highpass(invocation, config):
    for image in invocation.files:
        yield preprocess.highpass(image, invocation.number, config.keep_intermediates)


# ---------------------------------------------------------------------------
# Analysis and queries
# ---------------------------------------------------------------------------

def _ica(invocation, config):
    dims = int(invocation.number) if invocation.number is not None else None
    for image in invocation.files:
        yield analysis.ica(image, dims, report=config.ica_report)


def _fdr(invocation, config):
    q = invocation.value if invocation.number is not None else config.fdr_q
    for image in invocation.files:
        yield from analysis.fdr(image, q)


def _cluster(invocation, config):
    for image in invocation.files:
        yield from analysis.cluster_table(image, invocation.number)


def _xcorr(invocation, config):
    reference = invocation.reference
    for image in invocation.files[1:]:
        yield from analysis.cross_correlate(reference, image)


def _header(invocation, config):
    for image in invocation.files:
        yield from analysis.header(image)


def _info(invocation, config):
    for image in invocation.files:
        yield from analysis.info(image)


def _nvols(invocation, config):
    for image in invocation.files:
        yield str(images.n_volumes(image))


def _tr(invocation, config):
    for image in invocation.files:
        yield f"{images.repetition_time(image):g}"


def _mean(invocation, config):
    for image in invocation.files:
        yield analysis.format_value(analysis.voxel_mean(image))


def _std(invocation, config):
    for image in invocation.files:
        yield analysis.format_value(analysis.voxel_std(image))


def _view(invocation, config):
    analysis.view(invocation.files, config.viewer)
    yield from ()


HANDLERS: Dict[Operation, Handler] = {
    Operation.TMEAN: _tmean,
    Operation.TSTD: _tstd,
    Operation.TMAX: _tmax,
    Operation.TMIN: _tmin,
    Operation.TSNR: _tsnr,
    Operation.BIN: _bin,
    Operation.NAN: _nan,
    Operation.ABS: _abs,
    Operation.LTHRESH: _lthresh,
    Operation.UTHRESH: _uthresh,
    Operation.MASK: _mask,
    Operation.MOCO: _moco,
    Operation.MOCO_ME: _moco_me,
    Operation.COMBINE: _combine,
    Operation.MERGE: _merge,
    Operation.TMERGE: _tmerge,
    Operation.SPLIT: _split,
    Operation.VOLUME: _volume,
    Operation.REORIENT: _reorient,
    Operation.ALIGN: _align,
    Operation.BET: _bet,
    Operation.NORM: _norm,
    Operation.SMOOTH: _smooth,
    Operation.HIGHPASS: _highpass,
    Operation.ICA: _ica,
    Operation.FDR: _fdr,
    Operation.CLUSTER: _cluster,
    Operation.XCORR: _xcorr,
    Operation.HEADER: _header,
    Operation.INFO: _info,
    Operation.NVOLS: _nvols,
    Operation.TR: _tr,
    Operation.MEAN: _mean,
    Operation.STD: _std,
    Operation.VIEW: _view,
}

_missing = set(Operation) - set(HANDLERS)
if _missing:
    raise RuntimeError(f"No handler for: {', '.join(sorted(op.name for op in _missing))}")


def dispatch(invocation: Invocation, config: Config) -> Iterator[str]:
    """
    Validate an invocation and return its handler's output-line iterator.

    Argument problems raise :class:`UsageError` here, before any FSL
    program runs; tool failures surface while the iterator is consumed.
    """
    check_arguments(invocation)
    logger.info(
        "%s on %d file(s)%s",
        invocation.spec.name,
        len(invocation.files),
        f" with {invocation.number}" if invocation.number is not None else "",
    )
    return HANDLERS[invocation.spec.operation](invocation, config)
