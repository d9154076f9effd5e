"""
Consistency checks for finished traces. Meant for tests and debugging, not the hot path.
"""
import numpy as np

from hmmtrace.containers.trace import Trace, TraceError
from hmmtrace.core.alphabet import Alphabet
from hmmtrace.core.states import StateType, LEGAL_TRANSITIONS, FLANK_STATES, is_main, is_glocal, is_local


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class TraceValidationError(TraceError):
    """Raised when a trace violates a semantic invariant."""


# Functions ------------------------------------------------------------------------------------------------------------
def validate(trace: Trace, alphabet: Alphabet = None, dsq: np.ndarray = None):
    """
    Checks a forward-oriented trace against the profile grammar and its coordinate invariants.

    An empty trace is valid (no path exists). Without ``dsq``, emitted positions only need to increase strictly,
    which also admits traces in alignment-column coordinates. With ``dsq`` (sentinel-padded, length L+2), every
    residue 1..L must be emitted exactly once and, given an ``alphabet``, must be a residue symbol.

    Args:
        trace: The trace to check.
        alphabet: Alphabet used to check emitted symbols.
        dsq: The digital sequence the trace explains.

    Raises:
        TraceValidationError: Describing the first violated invariant.
    """
    n = len(trace)
    if n == 0: return
    st, k, i, pp = trace.st, trace.k, trace.i, trace.pp

    def fail(z: int, msg: str):
        raise TraceValidationError(f"step {z} ({StateType.decode(st[z])}{k[z] or ''}, i={i[z]}): {msg}")

    if n < 7: raise TraceValidationError(f"trace too short to be a complete path (N={n})")
    for z, expected in ((0, StateType.S), (1, StateType.N), (n - 2, StateType.C), (n - 1, StateType.T)):
        if st[z] != expected: fail(z, f"expected {expected.name}")

    M, L = trace.M, trace.L
    seq_len = len(dsq) - 2 if dsq is not None else None
    last_i = 0
    in_domain, domain_local = False, False
    for z in range(n):
        s = st[z]
        if not StateType.ML <= s <= StateType.T: fail(z, "unknown state type")
        if z > 0:
            prev = st[z - 1]
            if not LEGAL_TRANSITIONS[prev, s]: fail(z, f"illegal transition from {StateType.decode(prev)}")

        # Node coordinates
        if is_main(s):
            if not 1 <= k[z] <= M: fail(z, f"node out of range 1..{M}")
        elif k[z] != 0: fail(z, "node index on a special state")

        if s == StateType.B:
            in_domain = True
        elif s == StateType.L:
            domain_local = True
        elif s == StateType.G:
            domain_local = False
        elif s == StateType.E:
            in_domain = False
        if is_main(s):
            if not in_domain: fail(z, "main-model state outside a domain")
            if (domain_local and is_glocal(s)) or (not domain_local and is_local(s)):
                fail(z, "local and glocal states mixed in one domain")
            _check_node_step(z, st, k, M, fail)
        if s == StateType.E and z > 0 and is_glocal(st[z - 1]) and k[z - 1] != M:
            fail(z, f"glocal path exits before node {M}")

        # Sequence coordinates
        emits = (StateType.ML <= s <= StateType.IG) or (s in FLANK_STATES and z > 0 and st[z - 1] == s)
        if emits:
            if i[z] == 0: fail(z, "emitting step without a sequence position")
            if not 1 <= i[z] <= L: fail(z, f"position out of range 1..{L}")
            if i[z] <= last_i: fail(z, f"position does not increase (previous {last_i})")
            if seq_len is not None:
                if i[z] != last_i + 1: fail(z, f"position skips from {last_i}")
                if i[z] > seq_len: fail(z, f"position beyond sequence length {seq_len}")
                if alphabet is not None and not alphabet.is_residue(dsq[i[z]]):
                    fail(z, f"emits non-residue symbol {alphabet.symbol(dsq[i[z]])!r}")
            last_i = i[z]
        elif i[z] != 0:
            fail(z, "position on a nonemitting step")

        # Posteriors
        if pp is not None:
            if emits and not 0.0 <= pp[z] <= 1.0: fail(z, f"posterior {pp[z]} outside [0, 1]")
            if not emits and pp[z] != 0.0: fail(z, f"posterior {pp[z]} on a nonemitting step")

    if seq_len is not None and last_i != seq_len:
        raise TraceValidationError(f"trace emits residues 1..{last_i}, sequence has length {seq_len}")


def is_valid(trace: Trace, alphabet: Alphabet = None, dsq: np.ndarray = None) -> bool:
    """Returns whether ``validate`` accepts the trace."""
    try: validate(trace, alphabet, dsq)
    except TraceValidationError: return False
    return True


def _check_node_step(z: int, st: np.ndarray, k: np.ndarray, M: int, fail):
    """Node-index rules for a main-model step given its predecessor."""
    s, prev = st[z], st[z - 1]
    if prev == StateType.G:
        if k[z] != 1: fail(z, "glocal entry must be at node 1")
    elif prev == StateType.L:
        pass
    elif StateType.IL <= s <= StateType.IG:
        if k[z] == M: fail(z, f"no insert state at node {M}")
        if k[z] != k[z - 1]: fail(z, f"insert node does not follow node {k[z - 1]}")
    elif StateType.IL <= prev <= StateType.IG:
        if k[z] != k[z - 1] + 1: fail(z, f"node does not advance from insert at {k[z - 1]}")
    elif k[z] != k[z - 1] + 1:
        fail(z, f"node does not advance from {k[z - 1]}")
