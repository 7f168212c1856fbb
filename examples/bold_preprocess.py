#!/usr/bin/env python3
"""Minimal BOLD preprocessing chain built from fsl-verbs operations.

Equivalent shell pipeline:

    fslv hp 0.01 $(fslv smooth 5 $(fslv moco run1.nii.gz))

Usage: python bold_preprocess.py run1.nii.gz [run2.nii.gz ...]
"""

import os
import sys

from fsl_verbs.core.invocation import split_image_name
from fsl_verbs.core.maths import remove_image
from fsl_verbs.core.preprocess import highpass, motion_correct, smooth

FWHM = "5"
CUTOFF = "0.01"


for run in sys.argv[1:]:
    print(f"\n{'='*60}")
    print(f"  {run}")
    print(f"{'='*60}")

    print("\n1. Motion correction...")
    mcf = motion_correct(run)
    print(f"   {mcf}")

    print(f"\n2. SUSAN smoothing, FWHM {FWHM} mm...")
    smoothed = smooth(mcf, FWHM)
    print(f"   {smoothed}")

    print(f"\n3. High-pass filter, cutoff {CUTOFF} Hz...")
    filtered = highpass(smoothed, CUTOFF)
    print(f"   {filtered}")

    # Keep only the final image
    remove_image(mcf)
    os.remove(split_image_name(mcf)[0] + ".par")
    remove_image(smoothed)
