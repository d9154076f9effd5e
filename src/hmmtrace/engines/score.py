"""
Scoring a trace against a profile.

Three independent summations of the same path score are provided: naive forward, compensated (Kahan) forward
and naive backward. They accumulate in float32 like the score tables, so over long paths the naive sums drift
measurably while the compensated sum does not; comparing them is a self-consistency check for DP code.
"""
from concurrent.futures import Future
from typing import Final, Iterable
from warnings import warn

import numpy as np

from hmmtrace.containers.trace import Trace, TraceFormatError
from hmmtrace.core.profile import _transition_score_kernel
from hmmtrace.core.states import StateType
from hmmtrace.lib.protocols import ProfileLike
from hmmtrace.lib.resources import jit, RESOURCES


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class HmmTraceWarning(Warning):
    """Base class for package warnings."""


class NumericInconsistencyWarning(HmmTraceWarning):
    """Issued when independent summations of one path score disagree beyond tolerance."""


# Constants ------------------------------------------------------------------------------------------------------------
CONSISTENCY_TOLERANCE: Final = 1e-4
_FORWARD, _KAHAN, _BACKWARD = 0, 1, 2


# Functions ------------------------------------------------------------------------------------------------------------
def score(trace: Trace, dsq: np.ndarray, gm: ProfileLike) -> float:
    """
    Sums transition and emission scores along the path, start to end.

    Args:
        trace: A forward-oriented trace.
        dsq: The sentinel-padded digital sequence (or alignment row, for faux traces).
        gm: The profile.

    Returns:
        The path score in nats.

    Raises:
        TraceFormatError: If a node or position is out of range, or the path uses a transition the profile lacks.
    """
    return _run(trace, dsq, gm, 0, len(trace) - 1, _FORWARD)


def score_kahan(trace: Trace, dsq: np.ndarray, gm: ProfileLike) -> float:
    """Like ``score``, with compensated summation bounding round-off over long paths."""
    return _run(trace, dsq, gm, 0, len(trace) - 1, _KAHAN)


def score_backwards(trace: Trace, dsq: np.ndarray, gm: ProfileLike) -> float:
    """Like ``score``, summing from the end of the path back to its start."""
    return _run(trace, dsq, gm, 0, len(trace) - 1, _BACKWARD)


def score_domain(trace: Trace, dsq: np.ndarray, gm: ProfileLike, which: int) -> float:
    """
    Scores the span of one indexed domain, from its B through its E.

    Raises:
        IndexError: If the trace is not indexed or has no domain ``which``.
    """
    d = trace.domain(which)
    return _run(trace, dsq, gm, d.tfrom, d.tto, _FORWARD)


def expected_accuracy(trace: Trace) -> float:
    """
    Mean posterior probability over the emitting steps: the expected fraction of correctly placed residues.

    Raises:
        TraceFormatError: If the trace does not track posteriors.
    """
    if not trace.has_pp: raise TraceFormatError("Trace has no posterior probabilities")
    emitted = trace.i > 0
    if not emitted.any(): return 0.0
    return float(trace.pp[emitted].astype(np.float64).mean())


def check_consistency(trace: Trace, dsq: np.ndarray, gm: ProfileLike,
                      tol: float = CONSISTENCY_TOLERANCE) -> float:
    """
    Scores the trace three ways and warns if the results disagree by more than ``tol``.

    Returns:
        The compensated score.
    """
    sc = score(trace, dsq, gm)
    sc_kahan = score_kahan(trace, dsq, gm)
    sc_back = score_backwards(trace, dsq, gm)
    if np.isfinite(sc_kahan):
        spread = max(abs(sc - sc_kahan), abs(sc_back - sc_kahan))
        if spread > tol:
            warn(f"Path scores disagree by {spread:.3g} (forward {sc:.6f}, Kahan {sc_kahan:.6f}, "
                 f"backward {sc_back:.6f}) over {len(trace)} steps", NumericInconsistencyWarning)
    return sc_kahan


def score_batch(traces: Iterable[Trace], dsqs: Iterable[np.ndarray], gm: ProfileLike,
                kahan: bool = False) -> np.ndarray:
    """
    Scores many independent traces on the shared worker pool.

    Returns:
        A float64 array of scores, in input order.
    """
    func = score_kahan if kahan else score
    futures: list[Future] = [RESOURCES.pool.submit(func, tr, dsq, gm) for tr, dsq in zip(traces, dsqs)]
    return np.array([f.result() for f in futures], dtype=np.float64)


def _run(trace: Trace, dsq: np.ndarray, gm: ProfileLike, z0: int, z1: int, mode: int) -> float:
    if not isinstance(gm, ProfileLike): raise TypeError(f"Expected a profile, got {type(gm).__name__}")
    if len(trace) == 0: return float('-inf')
    if trace.M > gm.M: raise TraceFormatError(f"Trace uses node {trace.M}, profile has M={gm.M}")
    if trace.L > len(dsq) - 2: raise TraceFormatError(f"Trace emits position {trace.L}, sequence has L={len(dsq) - 2}")
    if mode == _KAHAN:
        sc, bad = _kahan_kernel(trace.st, trace.k, trace.i, dsq, gm.tsc, gm.xsc, gm.msc, gm.isc, gm.M, z0, z1)
    elif mode == _BACKWARD:
        sc, bad = _backward_kernel(trace.st, trace.k, trace.i, dsq, gm.tsc, gm.xsc, gm.msc, gm.isc, gm.M, z0, z1)
    else:
        sc, bad = _forward_kernel(trace.st, trace.k, trace.i, dsq, gm.tsc, gm.xsc, gm.msc, gm.isc, gm.M, z0, z1)
    if bad >= 0:
        s1, s2 = trace[bad], trace[bad + 1]
        raise TraceFormatError(f"Profile has no transition {s1.st.name}{s1.k or ''} -> {s2.st.name}{s2.k or ''} "
                               f"(steps {bad}, {bad + 1})")
    return float(sc)


# Kernels --------------------------------------------------------------------------------------------------------------
_ML, _MG, _IL, _IG = int(StateType.ML), int(StateType.MG), int(StateType.IL), int(StateType.IG)


@jit(nopython=True, cache=True, nogil=True)
def _emission_kernel(st, k, i, dsq, msc, isc, z):
    s = st[z]
    if s == _ML or s == _MG: return msc[k[z], dsq[i[z]]]
    if s == _IL or s == _IG: return isc[k[z], dsq[i[z]]]
    return np.float32(0.0)


@jit(nopython=True, cache=True, nogil=True)
def _forward_kernel(st, k, i, dsq, tsc, xsc, msc, isc, M, z0, z1):
    """Naive summation over steps z0..z1; returns (score, index of first illegal transition or -1)."""
    sc = np.float32(0.0)
    for z in range(z0, z1):
        sc += _emission_kernel(st, k, i, dsq, msc, isc, z)
        t = _transition_score_kernel(tsc, xsc, M, st[z], k[z], st[z + 1], k[z + 1])
        if t != t: return sc, z
        sc += t
    sc += _emission_kernel(st, k, i, dsq, msc, isc, z1)
    return sc, -1


@jit(nopython=True, cache=True, nogil=True)
def _kahan_add_kernel(sc, c, x):
    """One compensated addition; returns the new (sum, compensation). -inf absorbs everything."""
    if sc == -np.inf or x == -np.inf: return np.float32(-np.inf), np.float32(0.0)
    y = x - c
    t = sc + y
    c = (t - sc) - y
    return t, c


@jit(nopython=True, cache=True, nogil=True)
def _kahan_kernel(st, k, i, dsq, tsc, xsc, msc, isc, M, z0, z1):
    """Compensated summation over steps z0..z1."""
    sc = np.float32(0.0)
    c = np.float32(0.0)
    for z in range(z0, z1):
        sc, c = _kahan_add_kernel(sc, c, _emission_kernel(st, k, i, dsq, msc, isc, z))
        t = _transition_score_kernel(tsc, xsc, M, st[z], k[z], st[z + 1], k[z + 1])
        if t != t: return sc, z
        sc, c = _kahan_add_kernel(sc, c, t)
    sc, c = _kahan_add_kernel(sc, c, _emission_kernel(st, k, i, dsq, msc, isc, z1))
    return sc, -1


@jit(nopython=True, cache=True, nogil=True)
def _backward_kernel(st, k, i, dsq, tsc, xsc, msc, isc, M, z0, z1):
    """Naive summation over steps z1 down to z0."""
    sc = np.float32(0.0)
    for z in range(z1, z0, -1):
        sc += _emission_kernel(st, k, i, dsq, msc, isc, z)
        t = _transition_score_kernel(tsc, xsc, M, st[z - 1], k[z - 1], st[z], k[z])
        if t != t: return sc, z - 1
        sc += t
    sc += _emission_kernel(st, k, i, dsq, msc, isc, z0)
    return sc, -1
