"""
Equivalence tests between two traces.
"""
from typing import Optional, Final

import numpy as np

from hmmtrace.containers.trace import Trace
from hmmtrace.core.states import StateType
from hmmtrace.engines.validate import TraceValidationError


# Constants ------------------------------------------------------------------------------------------------------------
DEFAULT_PPTOL: Final = 0.01

# Emitting state kinds with local/glocal flavour folded, and N/C/J folded into "unaligned"
_KIND = np.zeros(len(StateType), dtype=np.int8)
_KIND[[StateType.ML, StateType.MG]] = 1
_KIND[[StateType.IL, StateType.IG]] = 2
_KIND[[StateType.N, StateType.C, StateType.J]] = 3


# Functions ------------------------------------------------------------------------------------------------------------
def compare(tr1: Trace, tr2: Trace, pptol: float = DEFAULT_PPTOL) -> bool:
    """
    Whether two traces are identical: same steps and coordinates, and posteriors within ``pptol`` (absolute).
    Domain indexes are compared too when both traces are indexed.
    """
    return _difference(tr1, tr2, pptol) is None


def assert_traces_equal(tr1: Trace, tr2: Trace, pptol: float = DEFAULT_PPTOL):
    """
    Like ``compare``, raising on the first difference.

    Raises:
        TraceValidationError: Describing where the traces differ.
    """
    if (diff := _difference(tr1, tr2, pptol)) is not None: raise TraceValidationError(diff)


def compare_loosely(tr1: Trace, tr2: Trace, dsq: np.ndarray = None) -> bool:
    """
    Whether two traces imply the same alignment of residues to the model.

    Only emitting steps are compared, in order: each pair must agree in kind (match, insert or unaligned, with
    local/glocal flavour ignored), node and position, and in residue when ``dsq`` is given. Differences in
    delete paths, entry/exit flavour and which of N, C or J absorbed an unaligned residue are tolerated.
    """
    e1, e2 = tr1.i > 0, tr2.i > 0
    if e1.sum() != e2.sum(): return False
    kind1, kind2 = _KIND[tr1.st[e1]], _KIND[tr2.st[e2]]
    i1, i2 = tr1.i[e1], tr2.i[e2]
    if not (np.array_equal(kind1, kind2) and np.array_equal(tr1.k[e1], tr2.k[e2]) and np.array_equal(i1, i2)):
        return False
    if dsq is not None:
        if len(i1) and max(i1.max(), i2.max()) > len(dsq) - 2: return False
        if not np.array_equal(dsq[i1], dsq[i2]): return False
    return True


def _difference(tr1: Trace, tr2: Trace, pptol: float) -> Optional[str]:
    """Describes the first difference between two traces, or returns None."""
    if len(tr1) != len(tr2): return f"lengths differ: {len(tr1)} vs {len(tr2)}"
    if tr1.M != tr2.M: return f"M differs: {tr1.M} vs {tr2.M}"
    if tr1.L != tr2.L: return f"L differs: {tr1.L} vs {tr2.L}"
    for name in ('st', 'k', 'i'):
        a, b = getattr(tr1, name), getattr(tr2, name)
        if not np.array_equal(a, b):
            z = int(np.argmax(a != b))
            return f"{name} differs at step {z}: {a[z]} vs {b[z]}"
    if tr1.has_pp != tr2.has_pp: return "only one trace has posterior probabilities"
    if tr1.has_pp:
        delta = np.abs(tr1.pp.astype(np.float64) - tr2.pp.astype(np.float64))
        if np.any(over := delta > pptol):
            z = int(np.argmax(over))
            return f"posterior differs at step {z}: {tr1.pp[z]} vs {tr2.pp[z]} (tolerance {pptol})"
    if tr1.ndom and tr2.ndom:
        if tr1.ndom != tr2.ndom: return f"domain counts differ: {tr1.ndom} vs {tr2.ndom}"
        for name in ('tfrom', 'tto', 'sqfrom', 'sqto', 'hmmfrom', 'hmmto'):
            if not np.array_equal(getattr(tr1, name), getattr(tr2, name)): return f"domain {name} differs"
    return None
