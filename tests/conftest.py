"""Shared fixtures: a recording stand-in for FSL and small NIfTI images."""

import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import nibabel as nib
import numpy as np
import pytest


class FakeFSL:
    """Records FSL command lines; touches the declared output image."""

    def __init__(self):
        self.calls = []
        self.stdout = {}

    def __call__(self, cmd, output=None):
        self.calls.append([str(c) for c in cmd])
        if output:
            Path(output).touch()
        return MagicMock(stdout=self.stdout.get(cmd[0], ""), stderr="", returncode=0)

    @property
    def programs(self):
        return [c[0] for c in self.calls]


@pytest.fixture
def fake_fsl():
    fake = FakeFSL()
    with patch("fsl_verbs.io.fsl_io.run_fsl", side_effect=fake):
        yield fake


@pytest.fixture
def make_image(tmp_path):
    """Write a NIfTI image under tmp_path and return its canonical path."""

    def _make(name, shape=(4, 4, 4), tr=None, data=None):
        if data is None:
            data = np.arange(1, int(np.prod(shape)) + 1, dtype=np.float32).reshape(shape)
        img = nib.Nifti1Image(np.asarray(data, dtype=np.float32), np.eye(4))
        if tr is not None:
            img.header.set_zooms((2.0, 2.0, 2.0, tr))
            img.header.set_xyzt_units("mm", "sec")
        path = tmp_path / name
        nib.save(img, str(path))
        return os.path.realpath(str(path))

    return _make


@pytest.fixture(autouse=True)
def no_fsldir(monkeypatch):
    """Resolve FSL programs by bare name regardless of the host install."""
    monkeypatch.delenv("FSLDIR", raising=False)
    monkeypatch.delenv("FSL_VERBS_CONFIG", raising=False)
    monkeypatch.setenv("HOME", os.devnull)
