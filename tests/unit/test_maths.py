"""Tests for core/maths.py — fslmaths wrappers."""

import os

import pytest

from fsl_verbs.core.maths import (
    absolute,
    apply_mask,
    binarize,
    combine_echoes,
    intermediates,
    lower_threshold,
    remove_image,
    remove_nans,
    temporal_mean,
    temporal_snr,
    upper_threshold,
)


class TestSimpleOperations:
    def test_temporal_mean(self, fake_fsl, make_image):
        a = make_image("a.nii.gz", shape=(2, 2, 2, 3))
        out = temporal_mean(a)

        assert out == a.replace("a.nii.gz", "a_tmean.nii.gz")
        assert fake_fsl.calls == [["fslmaths", a, "-Tmean", out]]

    @pytest.mark.parametrize("func,flag,tag", [
        (binarize, "-bin", "bin"),
        (remove_nans, "-nan", "nonan"),
        (absolute, "-abs", "abs"),
    ])
    def test_unary(self, fake_fsl, make_image, func, flag, tag):
        a = make_image("a.nii.gz")
        out = func(a)
        assert out.endswith(f"a_{tag}.nii.gz")
        assert fake_fsl.calls[0][2] == flag

    def test_lower_threshold_decimal(self, fake_fsl, make_image):
        b = make_image("b.nii.gz")
        out = lower_threshold(b, "2.5")

        assert out.endswith("b_lthresh2_5.nii.gz")
        assert fake_fsl.calls == [["fslmaths", b, "-thr", "2.5", out]]

    def test_upper_threshold(self, fake_fsl, make_image):
        b = make_image("b.nii")
        out = upper_threshold(b, "100")
        assert out.endswith("b_uthresh100.nii")
        assert fake_fsl.calls[0][2:4] == ["-uthr", "100"]

    def test_apply_mask(self, fake_fsl, make_image):
        a = make_image("a.nii.gz")
        m = make_image("m.nii.gz")
        out = apply_mask(a, m)
        assert out.endswith("a_masked.nii.gz")
        assert fake_fsl.calls[0][2:4] == ["-mas", m]


class TestCombineEchoes:
    def test_average_of_three(self, fake_fsl, make_image):
        e1 = make_image("run1.nii.gz")
        e2 = make_image("run1_e2.nii.gz")
        e3 = make_image("run1_e3.nii.gz")

        out = combine_echoes([e1, e2, e3])

        assert out.endswith("run1_echoescombined.nii.gz")
        assert fake_fsl.calls == [[
            "fslmaths", e1, "-add", e2, "-add", e3, "-div", "3", out,
        ]]


class TestTemporalSnr:
    def test_intermediates_removed(self, fake_fsl, make_image):
        a = make_image("a.nii.gz", shape=(2, 2, 2, 4))

        out = temporal_snr(a)

        mean = a.replace("a.nii.gz", "a_tmean.nii.gz")
        std = a.replace("a.nii.gz", "a_tstd.nii.gz")
        assert out.endswith("a_tsnr.nii.gz")
        assert fake_fsl.calls[-1] == ["fslmaths", mean, "-div", std, out]
        assert not os.path.exists(mean)
        assert not os.path.exists(std)
        assert os.path.exists(out)

    def test_keep_intermediates(self, fake_fsl, make_image):
        a = make_image("a.nii.gz", shape=(2, 2, 2, 4))
        temporal_snr(a, keep_intermediates=True)
        assert os.path.exists(a.replace("a.nii.gz", "a_tmean.nii.gz"))


class TestIntermediates:
    def test_left_in_place_on_failure(self, tmp_path):
        tmp_file = tmp_path / "x_tmean.nii.gz"
        tmp_file.write_text("")

        with pytest.raises(RuntimeError):
            with intermediates() as tmp:
                tmp.append(str(tmp_file))
                raise RuntimeError("tool failed")

        assert tmp_file.exists()

    def test_removed_on_success(self, tmp_path):
        tmp_file = tmp_path / "x_tmean.nii.gz"
        tmp_file.write_text("")

        with intermediates() as tmp:
            tmp.append(str(tmp_file))

        assert not tmp_file.exists()


class TestRemoveImage:
    def test_analyze_pair(self, tmp_path):
        hdr = tmp_path / "x.hdr"
        img = tmp_path / "x.img"
        hdr.write_text("")
        img.write_text("")

        remove_image(str(hdr))

        assert not hdr.exists()
        assert not img.exists()

    def test_missing_is_ignored(self, tmp_path):
        remove_image(str(tmp_path / "never_written.nii.gz"))
