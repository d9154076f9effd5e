"""
Counting traces into a model's training counts.
"""
import numpy as np

from hmmtrace.containers.trace import Trace, TraceFormatError
from hmmtrace.core.hmm import Tcount
from hmmtrace.core.states import StateType
from hmmtrace.lib.protocols import CountsLike


# Constants ------------------------------------------------------------------------------------------------------------
# Core-model transition for a (main state, next main state) pair, flavour folded
_MAIN_TRANSITIONS = {
    ('M', 'M'): Tcount.MM, ('M', 'I'): Tcount.MI, ('M', 'D'): Tcount.MD,
    ('I', 'M'): Tcount.IM, ('I', 'I'): Tcount.II,
    ('D', 'M'): Tcount.DM, ('D', 'D'): Tcount.DD,
}
_KIND = {StateType.ML: 'M', StateType.MG: 'M', StateType.IL: 'I', StateType.IG: 'I',
         StateType.DL: 'D', StateType.DG: 'D'}


# Functions ------------------------------------------------------------------------------------------------------------
def count(hmm: CountsLike, dsq: np.ndarray, wt: float, trace: Trace) -> CountsLike:
    """
    Adds the weighted transitions and emissions of one trace to a model's counts, in place.

    Emissions are counted for match and insert steps; degenerate residues are split over the residues they stand
    for. Transitions are counted in core-model coordinates: a glocal entry G->M1/D1 counts as node 0 MM/MD, a
    glocal exit from node M counts as MM/DM at node M. Local entries and exits are not core-model transitions
    and are not counted; flanking states carry no model parameters.

    Args:
        hmm: The model whose counts are incremented.
        dsq: Digital sequence (the alignment row for traces in column coordinates).
        wt: Weight of this sequence.
        trace: A forward-oriented trace.

    Returns:
        The same model, for chaining.

    Raises:
        TraceFormatError: If the trace does not fit the model or uses a transition with no core-model counterpart.
    """
    if not isinstance(hmm, CountsLike): raise TypeError(f"Expected a count model, got {type(hmm).__name__}")
    if trace.M > hmm.M: raise TraceFormatError(f"Trace uses node {trace.M}, model has M={hmm.M}")
    if trace.L > len(dsq) - 2: raise TraceFormatError(f"Trace emits position {trace.L}, sequence has L={len(dsq) - 2}")
    abc, M = hmm.alphabet, hmm.M
    st, k, i = trace.st, trace.k, trace.i
    for z in range(len(trace) - 1):
        s, s2, kz = StateType(st[z]), StateType(st[z + 1]), k[z]

        if s == StateType.ML or s == StateType.MG: abc.count(hmm.mat[kz], dsq[i[z]], wt)
        elif s == StateType.IL or s == StateType.IG: abc.count(hmm.ins[kz], dsq[i[z]], wt)

        if s == StateType.G:
            if s2 == StateType.MG: hmm.t[0, Tcount.MM] += wt
            elif s2 == StateType.DG: hmm.t[0, Tcount.MD] += wt
            else: _bad(z, s, s2)
        elif s in _KIND:
            if s2 == StateType.E:
                if kz == M: hmm.t[M, Tcount.MM if _KIND[s] == 'M' else Tcount.DM] += wt
                elif s in (StateType.MG, StateType.DG): _bad(z, s, s2)
            elif s2 in _KIND:
                if (t := _MAIN_TRANSITIONS.get((_KIND[s], _KIND[s2]))) is None: _bad(z, s, s2)
                hmm.t[kz, t] += wt
            else: _bad(z, s, s2)
    return hmm


def _bad(z: int, s: StateType, s2: StateType):
    raise TraceFormatError(f"Transition {s.name} -> {s2.name} at step {z} has no core-model counterpart")
