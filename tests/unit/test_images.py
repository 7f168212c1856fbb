"""Tests for io/images.py — nibabel header and voxel access."""

import nibabel as nib
import numpy as np
import pytest

from fsl_verbs.io.images import (
    image_shape,
    load_image,
    n_volumes,
    nonzero_voxels,
    repetition_time,
)


class TestVolumes:
    def test_3d(self, make_image):
        path = make_image("t1.nii.gz", shape=(3, 4, 5))
        assert image_shape(path) == (3, 4, 5)
        assert n_volumes(path) == 1

    def test_4d(self, make_image):
        path = make_image("bold.nii.gz", shape=(2, 2, 2, 7), tr=2.0)
        assert n_volumes(path) == 7


class TestRepetitionTime:
    def test_seconds(self, make_image):
        path = make_image("bold.nii.gz", shape=(2, 2, 2, 5), tr=1.5)
        assert repetition_time(path) == pytest.approx(1.5)

    def test_milliseconds(self, tmp_path):
        img = nib.Nifti1Image(np.ones((2, 2, 2, 3), dtype=np.float32), np.eye(4))
        img.header.set_zooms((2.0, 2.0, 2.0, 2000.0))
        img.header.set_xyzt_units("mm", "msec")
        path = str(tmp_path / "bold_ms.nii.gz")
        nib.save(img, path)

        assert repetition_time(path) == pytest.approx(2.0)

    def test_3d_has_no_tr(self, make_image):
        path = make_image("t1.nii.gz")
        with pytest.raises(ValueError, match="No repetition time"):
            repetition_time(path)


class TestNonzeroVoxels:
    def test_drops_zeros_and_nans(self, make_image):
        data = np.zeros((2, 2, 2), dtype=np.float32)
        data[0, 0, 0] = 3.0
        data[1, 1, 1] = -1.0
        data[0, 1, 0] = np.nan
        path = make_image("x.nii.gz", shape=(2, 2, 2), data=data)

        values = nonzero_voxels(path)
        assert sorted(values.tolist()) == [-1.0, 3.0]


class TestLoadImage:
    def test_not_an_image(self, tmp_path):
        notes = tmp_path / "notes.txt"
        notes.write_text("scan notes\n")

        with pytest.raises(ValueError, match="Not a readable image"):
            load_image(str(notes))

        with pytest.raises(ValueError, match="notes.txt"):
            n_volumes(str(notes))
