from io import BytesIO

import numpy as np
import pytest

from hmmtrace.io.plot import write_domain_inference, heatmap, write_heatmap


class TestDomainInference:
    def test_flags_domain_residues(self, glocal_trace):
        out = BytesIO()
        write_domain_inference(out, glocal_trace.index())
        assert out.getvalue() == b"1 0\n2 1\n3 1\n4 1\n5 1\n6 0\n&\n"

    def test_window(self, glocal_trace):
        out = BytesIO()
        write_domain_inference(out, glocal_trace.index(), ia=2, ib=3)
        assert out.getvalue() == b"2 1\n3 1\n&\n"

    def test_unindexed(self, local_trace):
        out = BytesIO()
        write_domain_inference(out, local_trace)
        assert out.getvalue() == b"1 0\n2 0\n&\n"


class TestHeatmap:
    def test_cells(self, glocal_trace):
        hm = heatmap(glocal_trace)
        assert hm.shape == (6, 4)
        expected = np.zeros((6, 4))
        expected[[1, 2, 3, 4], [0, 1, 1, 2]] = 1.0
        np.testing.assert_array_equal(hm, expected)

    def test_posteriors_and_window(self, build):
        tr = build([('S', 0, 0), ('N', 0, 0), ('B', 0, 0), ('L', 0, 0), ('ML', 2, 1, 0.5), ('ML', 3, 2, 0.25),
                    ('E', 0, 0), ('C', 0, 0), ('T', 0, 0)], with_pp=True)
        np.testing.assert_allclose(heatmap(tr, 2, 2, 3, 3), [[0.25]])
        np.testing.assert_allclose(heatmap(tr, ka=2), [[0.5, 0.0], [0.0, 0.25]])

    def test_empty_window(self, local_trace):
        with pytest.raises(ValueError):
            heatmap(local_trace, ia=2, ib=1)

    def test_write(self, local_trace):
        out = BytesIO()
        write_heatmap(out, local_trace)
        assert out.getvalue() == b"1.0000\t0.0000\n0.0000\t1.0000\n"
