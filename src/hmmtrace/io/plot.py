"""
Raw coordinate streams of a trace, for plotting with external tools.

Writers take binary handles and emit ASCII lines, so the output can go straight to a file, a pipe or an
in-memory buffer.
"""
from typing import BinaryIO

import numpy as np

from hmmtrace.containers.trace import Trace
from hmmtrace.core.states import StateType


# Functions ------------------------------------------------------------------------------------------------------------
def write_domain_inference(handle: BinaryIO, trace: Trace, ia: int = None, ib: int = None):
    """
    Writes one ``i flag`` line per emitted residue in ``ia..ib``, flag 1 when the residue lies inside an indexed
    domain and 0 otherwise, followed by a ``&`` record separator.

    Args:
        handle: Binary output handle.
        trace: An indexed trace; an unindexed trace flags every residue 0.
        ia: First position to write, defaults to 1.
        ib: Last position to write, defaults to ``trace.L``.    """
    ia = 1 if ia is None else ia
    ib = trace.L if ib is None else ib
    flags = _domain_mask(trace)
    i = trace.i
    for z in np.flatnonzero((i >= ia) & (i <= ib) & (i > 0)):
        handle.write(b"%d %d\n" % (int(i[z]), int(flags[z])))
    handle.write(b"&\n")


def heatmap(trace: Trace, ia: int = None, ib: int = None, ka: int = None, kb: int = None) -> np.ndarray:
    """
    Marks the residue/node cells a trace aligns, for sequence window ``ia..ib`` and model window ``ka..kb``.

    Returns:
        A float64 matrix of shape ``(ib - ia + 1, kb - ka + 1)``; row ``i - ia`` and column ``k - ka`` hold the
        posterior of the match or insert step aligning residue i to node k (1.0 when posteriors are not tracked),
        and 0 elsewhere.
    """
    ia = 1 if ia is None else ia
    ib = trace.L if ib is None else ib
    ka = 1 if ka is None else ka
    kb = trace.M if kb is None else kb
    if ib < ia or kb < ka: raise ValueError(f"Empty heat map window: i {ia}..{ib}, k {ka}..{kb}")
    out = np.zeros((ib - ia + 1, kb - ka + 1), dtype=np.float64)
    st, k, i = trace.st, trace.k, trace.i
    aligned = ((st >= StateType.ML) & (st <= StateType.IG) & (i >= ia) & (i <= ib) & (k >= ka) & (k <= kb))
    values = trace.pp[aligned] if trace.has_pp else 1.0
    out[i[aligned] - ia, k[aligned] - ka] = values
    return out


def write_heatmap(handle: BinaryIO, trace: Trace, ia: int = None, ib: int = None, ka: int = None, kb: int = None):
    """Writes ``heatmap(...)`` as tab-delimited rows, one per residue."""
    for row in heatmap(trace, ia, ib, ka, kb):
        handle.write(b"\t".join(b"%.4f" % v for v in row) + b"\n")


def _domain_mask(trace: Trace) -> np.ndarray:
    """1 for each step lying within an indexed B..E span, else 0."""
    mask = np.zeros(len(trace), dtype=np.int8)
    for tfrom, tto in zip(trace.tfrom, trace.tto): mask[tfrom:tto + 1] = 1
    return mask
