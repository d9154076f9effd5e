"""
Building traces directly from a multiple sequence alignment, without dynamic programming.

Given which columns are assigned to model nodes, each aligned row maps column by column onto states: residues in
match columns are matches, gaps there are deletions, residues in insert columns are insertions (or N/C flanking
residues before the first and after the last match column). The naive mapping can imply D->I and I->D
transitions the profile grammar does not have; ``doctor`` rewrites them into equivalent legal paths.
"""
from enum import IntFlag
from typing import Union

import numpy as np

from hmmtrace.containers.trace import Trace, TraceFormatError
from hmmtrace.core.states import StateType
from hmmtrace.lib.protocols import MSALike


# Constants ------------------------------------------------------------------------------------------------------------
class FauxFlags(IntFlag):
    """Options for ``faux_from_msa``."""
    DEFAULT = 0
    MSA_COORDS = 1  # record alignment column coordinates instead of unaligned sequence positions
    LOCAL = 2  # trim leading/trailing deletions and make the domain local


_TO_LOCAL = {StateType.G: StateType.L, StateType.MG: StateType.ML, StateType.IG: StateType.IL,
             StateType.DG: StateType.DL}


# Functions ------------------------------------------------------------------------------------------------------------
def faux_from_msa(msa: MSALike, matassign: Union[np.ndarray, list[bool]],
                  flags: FauxFlags = FauxFlags.MSA_COORDS) -> list[Trace]:
    """
    Builds one forward-oriented, doctored and indexed trace per aligned sequence.

    With ``FauxFlags.MSA_COORDS`` (the default) positions are alignment column coordinates 1..alen, so the
    trace must be read against the digital alignment row (``msa.ax[idx]``), not the unaligned sequence.

    Args:
        msa: Digital alignment.
        matassign: One flag per alignment column, True for columns assigned to model nodes.
        flags: ``FauxFlags`` options.

    Returns:
        A list of traces in row order.

    Raises:
        TraceFormatError: If ``matassign`` does not have one entry per column, assigns no column, or a row
            contains a nonresidue symbol.
    """
    if not isinstance(msa, MSALike): raise TypeError(f"Expected an alignment, got {type(msa).__name__}")
    matassign = np.asarray(matassign, dtype=bool)
    if matassign.ndim != 1 or len(matassign) != msa.alen:
        raise TraceFormatError(f"matassign has {matassign.size} entries for an alignment of {msa.alen} columns")
    if not matassign.any(): raise TraceFormatError("matassign assigns no column to the model")

    abc = msa.alphabet
    match_cols = np.flatnonzero(matassign) + 1
    first_match, last_match = match_cols[0], match_cols[-1]
    traces = []
    for idx in range(msa.nseq):
        ax = msa.ax[idx]
        tr = Trace(nalloc=msa.alen + 8)
        tr.append(StateType.S).append(StateType.N)
        k, i = 0, 0
        # The E and C go in as soon as the last match column is done
        for cpos in range(1, msa.alen + 1):
            x = ax[cpos]
            is_residue = abc.is_residue(x)
            if not is_residue and not abc.is_gap(x) and not abc.is_missing(x):
                raise TraceFormatError(f"Row {idx} has nonresidue symbol {abc.symbol(x)!r} at column {cpos}")
            if cpos == first_match: tr.append(StateType.B).append(StateType.G)
            if is_residue: i += 1
            pos = cpos if flags & FauxFlags.MSA_COORDS else i
            if matassign[cpos - 1]:
                k += 1
                if is_residue: tr.append(StateType.MG, k, pos)
                else: tr.append(StateType.DG, k)
            elif is_residue:
                if cpos < first_match: tr.append(StateType.N, 0, pos)
                elif cpos > last_match: tr.append(StateType.C, 0, pos)
                else: tr.append(StateType.IG, k, pos)
            if cpos == last_match: tr.append(StateType.E).append(StateType.C)
        tr.append(StateType.T)

        doctor(tr)
        if flags & FauxFlags.LOCAL: tr = _localize(tr)
        traces.append(tr.index())
    return traces


def doctor(trace: Trace) -> tuple[int, int]:
    """
    Collapses D->I and I->D pairs into a single match step, in place.

    ``Dk Ik`` becomes ``Mk`` carrying the insert's residue; ``Ik Dk+1`` becomes ``Mk+1`` carrying it. The local or
    glocal flavour is kept, emitted residues and their posteriors are preserved, and an indexed trace is
    re-indexed.

    Returns:
        ``(n_di, n_id)``: the number of D->I and I->D pairs rewritten.
    """
    was_indexed = trace.ndom > 0
    st, k, i, pp = trace.st, trace.k, trace.i, trace.pp
    n = len(trace)
    n_di = n_id = 0
    opos = npos = 0
    while opos < n:
        s = st[opos]
        nxt = st[opos + 1] if opos + 1 < n else StateType.BOGUS
        src = None
        if s in (StateType.DL, StateType.DG) and nxt in (StateType.IL, StateType.IG):
            node, src = k[opos], opos + 1
            n_di += 1
        elif s in (StateType.IL, StateType.IG) and nxt in (StateType.DL, StateType.DG):
            node, src = k[opos + 1], opos
            n_id += 1
        if src is not None:
            st[npos] = StateType.ML if s in (StateType.DL, StateType.IL) else StateType.MG
            k[npos], i[npos] = node, i[src]
            if pp is not None: pp[npos] = pp[src]
            opos += 2
        else:
            st[npos], k[npos], i[npos] = st[opos], k[opos], i[opos]
            if pp is not None: pp[npos] = pp[opos]
            opos += 1
        npos += 1
    trace.truncate(npos)
    if was_indexed: trace.index()
    return n_di, n_id


def _localize(trace: Trace) -> Trace:
    """Rebuilds a glocal faux trace as a local one, dropping deletions outside its first..last match."""
    matches = np.flatnonzero(trace.st == StateType.MG)
    if len(matches) == 0: return trace
    first, last = matches[0], matches[-1]
    local = Trace(with_pp=trace.has_pp, nalloc=len(trace))
    for z, step in enumerate(trace):
        if step.st == StateType.DG and not first < z < last: continue
        pp = step.pp if trace.has_pp and step.i else None
        local.append(_TO_LOCAL.get(step.st, step.st), step.k, step.i, pp)
    return local
