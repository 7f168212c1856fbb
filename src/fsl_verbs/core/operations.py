"""
Operation Table

Closed set of operations and the static alias table that maps every
accepted spelling of a verb onto exactly one :class:`Operation`.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class Operation(Enum):
    TMEAN = "tmean"
    TSTD = "tstd"
    TMAX = "tmax"
    TMIN = "tmin"
    TSNR = "tsnr"
    BIN = "bin"
    NAN = "nan"
    ABS = "abs"
    LTHRESH = "lthresh"
    UTHRESH = "uthresh"
    MASK = "mask"
    MOCO = "moco"
    MOCO_ME = "mcme"
    COMBINE = "combine"
    MERGE = "merge"
    TMERGE = "tmerge"
    SPLIT = "split"
    VOLUME = "vol"
    REORIENT = "reorient"
    ALIGN = "align"
    BET = "bet"
    NORM = "norm"
    SMOOTH = "smooth"
    HIGHPASS = "highpass"
    ICA = "ica"
    FDR = "fdr"
    CLUSTER = "cluster"
    XCORR = "xcorr"
    HEADER = "header"
    INFO = "info"
    NVOLS = "nvols"
    TR = "tr"
    MEAN = "mean"
    STD = "std"
    VIEW = "view"


class NumberRole(Enum):
    """Whether an operation takes a leading numeric parameter."""
    NONE = "none"
    OPTIONAL = "optional"
    REQUIRED = "required"


@dataclass(frozen=True)
class OperationSpec:
    """Argument schema and help text for one operation.

    Attributes
    ----------
    operation : Operation
        Operation this entry describes.
    aliases : tuple of str
        Accepted spellings; the first one is canonical.
    summary : str
        One-line description for the help listing.
    usage : str
        Argument synopsis printed on misuse.
    number : NumberRole
        Role of the leading numeric parameter.
    min_files : int
        Minimum number of file arguments.
    pipeable : bool
        Whether stdout lists output image paths.
    """
    operation: Operation
    aliases: Tuple[str, ...]
    summary: str
    usage: str
    number: NumberRole = NumberRole.NONE
    min_files: int = 1
    pipeable: bool = True

    @property
    def name(self) -> str:
        return self.aliases[0]

    def usage_line(self) -> str:
        return f"Usage: fslv {self.name} {self.usage}"


OPERATION_SPECS: Tuple[OperationSpec, ...] = (
    OperationSpec(Operation.TMEAN, ("tmean", "Tmean"),
                  "temporal mean", "<image> [<image> ...]"),
    OperationSpec(Operation.TSTD, ("tstd", "Tstd"),
                  "temporal standard deviation", "<image> [<image> ...]"),
    OperationSpec(Operation.TMAX, ("tmax", "Tmax"),
                  "temporal maximum", "<image> [<image> ...]"),
    OperationSpec(Operation.TMIN, ("tmin", "Tmin"),
                  "temporal minimum", "<image> [<image> ...]"),
    OperationSpec(Operation.TSNR, ("tsnr", "snr"),
                  "temporal SNR (mean / std)", "<image> [<image> ...]"),
    OperationSpec(Operation.BIN, ("bin",),
                  "binarize", "<image> [<image> ...]"),
    OperationSpec(Operation.NAN, ("nan", "nans"),
                  "replace NaNs with zero", "<image> [<image> ...]"),
    OperationSpec(Operation.ABS, ("abs", "mag", "magn"),
                  "absolute value / magnitude", "<image> [<image> ...]"),
    OperationSpec(Operation.LTHRESH, ("lthresh", "lthr", "lowthresh"),
                  "zero voxels below threshold", "<threshold> <image> [<image> ...]",
                  number=NumberRole.REQUIRED),
    OperationSpec(Operation.UTHRESH, ("uthresh", "uthr", "hthresh", "hthr", "highthresh"),
                  "zero voxels above threshold", "<threshold> <image> [<image> ...]",
                  number=NumberRole.REQUIRED),
    OperationSpec(Operation.MASK, ("mask", "applymask"),
                  "apply a mask to images", "<mask> <image> [<image> ...]",
                  min_files=2),
    OperationSpec(Operation.MOCO, ("moco", "mc"),
                  "motion correction (mcflirt)", "<image> [<image> ...]"),
    OperationSpec(Operation.MOCO_ME, ("mcme", "mocome", "memoco"),
                  "multi-echo motion correction, estimated on the first echo",
                  "<echo1> <echo2> [<echo> ...]", min_files=2),
    OperationSpec(Operation.COMBINE, ("combine", "echoes", "combineechoes", "mecombine"),
                  "average echoes into one image", "<echo1> <echo2> [<echo> ...]",
                  min_files=2),
    OperationSpec(Operation.MERGE, ("merge",),
                  "merge images (fslmerge -a)", "<image> <image> [<image> ...]",
                  min_files=2),
    OperationSpec(Operation.TMERGE, ("tmerge", "merget", "concatt", "tconcat"),
                  "concatenate images in time", "<image> <image> [<image> ...]",
                  min_files=2),
    OperationSpec(Operation.SPLIT, ("split", "tsplit"),
                  "split a 4D image into volumes", "<image> [<image> ...]"),
    OperationSpec(Operation.VOLUME, ("vol", "roi"),
                  "extract a single volume", "<index> <image> [<image> ...]",
                  number=NumberRole.REQUIRED),
    OperationSpec(Operation.REORIENT, ("reorient", "reorient2std"),
                  "reorient to standard orientation", "<image> [<image> ...]"),
    OperationSpec(Operation.ALIGN, ("align", "register", "reg", "flirt"),
                  "linear registration to a reference (flirt)",
                  "[<dof>] <reference> <image> [<image> ...]",
                  number=NumberRole.OPTIONAL, min_files=2),
    OperationSpec(Operation.BET, ("bet", "brain", "rmskull"),
                  "brain extraction", "[<frac>] <image> [<image> ...]",
                  number=NumberRole.OPTIONAL),
    OperationSpec(Operation.NORM, ("norm", "normalize", "normalise", "inorm"),
                  "scale brain median intensity to a target",
                  "[<target>] <image> [<image> ...]", number=NumberRole.OPTIONAL),
    OperationSpec(Operation.SMOOTH, ("susan", "sue", "smooth"),
                  "SUSAN smoothing", "<fwhm_mm> <image> [<image> ...]",
                  number=NumberRole.REQUIRED),
    OperationSpec(Operation.HIGHPASS, ("highpass", "hp", "hpf", "bptf"),
                  "temporal high-pass filter", "<cutoff_hz> <image> [<image> ...]",
                  number=NumberRole.REQUIRED),
    OperationSpec(Operation.ICA, ("ica", "melodic"),
                  "single-session ICA (melodic)", "[<dims>] <image> [<image> ...]",
                  number=NumberRole.OPTIONAL),
    OperationSpec(Operation.FDR, ("fdr",),
                  "FDR threshold of a p-value image", "[<q>] <pimage> [<pimage> ...]",
                  number=NumberRole.OPTIONAL, pipeable=False),
    OperationSpec(Operation.CLUSTER, ("cluster", "clusters"),
                  "cluster table", "<threshold> <image> [<image> ...]",
                  number=NumberRole.REQUIRED, pipeable=False),
    OperationSpec(Operation.XCORR, ("xcorr", "cc", "crosscorr", "fslcc"),
                  "cross-correlation with a reference", "<reference> <image> [<image> ...]",
                  min_files=2, pipeable=False),
    OperationSpec(Operation.HEADER, ("header", "hdr", "fslhd"),
                  "print header", "<image> [<image> ...]", pipeable=False),
    OperationSpec(Operation.INFO, ("info", "fslinfo"),
                  "print image info", "<image> [<image> ...]", pipeable=False),
    OperationSpec(Operation.NVOLS, ("nvols", "fslnvols"),
                  "number of volumes", "<image> [<image> ...]", pipeable=False),
    OperationSpec(Operation.TR, ("tr",),
                  "repetition time in seconds", "<image> [<image> ...]", pipeable=False),
    OperationSpec(Operation.MEAN, ("mean", "avg"),
                  "mean of non-zero voxels", "<image> [<image> ...]", pipeable=False),
    OperationSpec(Operation.STD, ("std", "sd"),
                  "standard deviation of non-zero voxels", "<image> [<image> ...]",
                  pipeable=False),
    OperationSpec(Operation.VIEW, ("view", "v"),
                  "open images in the viewer", "<image> [<image> ...]", pipeable=False),
)


def _build_alias_table(specs: Tuple[OperationSpec, ...]) -> Dict[str, OperationSpec]:
    table: Dict[str, OperationSpec] = {}
    for spec in specs:
        for alias in spec.aliases:
            if alias in table:
                raise ValueError(
                    f"Alias '{alias}' used by both {table[alias].operation.name} "
                    f"and {spec.operation.name}"
                )
            table[alias] = spec
    return table


ALIASES: Dict[str, OperationSpec] = _build_alias_table(OPERATION_SPECS)
SPECS: Dict[Operation, OperationSpec] = {spec.operation: spec for spec in OPERATION_SPECS}


def lookup_operation(name: str) -> Optional[OperationSpec]:
    """Resolve an alias to its operation spec (case-sensitive)."""
    return ALIASES.get(name)


def format_operation_table() -> str:
    """Alias listing for the CLI help epilog."""
    lines = ["operations:"]
    for spec in OPERATION_SPECS:
        aliases = "/".join(spec.aliases)
        lines.append(f"  {aliases:<36} {spec.summary}")
    return "\n".join(lines)
