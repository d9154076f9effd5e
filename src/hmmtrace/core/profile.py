"""
Module for profile score tables.

A profile holds log-odds scores (nats) for a dual-mode (local + glocal) profile HMM with nodes 1..M. Only the
tables and the transition rules a trace is scored against live here; filling DP matrices is out of scope.
"""
from enum import IntEnum
from typing import Final

import numpy as np

from hmmtrace.core.alphabet import Alphabet
from hmmtrace.core.states import StateType
from hmmtrace.lib.resources import jit, RESOURCES


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class ProfileError(ValueError):
    """Raised when a profile is malformed or asked for a transition it does not have."""


# Constants ------------------------------------------------------------------------------------------------------------
class Tsc(IntEnum):
    """
    Columns of ``Profile.tsc``. Row k holds transitions out of node k, except ``LM`` where row k-1 holds
    L->Mk, and row 0 where ``MM``/``MD`` hold G->M1/G->D1.
    """
    MM = 0
    IM = 1
    DM = 2
    LM = 3
    MD = 4
    DD = 5
    MI = 6
    II = 7


class Xsc(IntEnum):
    """Rows of ``Profile.xsc``."""
    E = 0
    N = 1
    J = 2
    C = 3
    B = 4


class Move(IntEnum):
    """Columns of ``Profile.xsc``: stay in the state, or move on (for B: LOOP is B->L, MOVE is B->G)."""
    LOOP = 0
    MOVE = 1


N_TSC: Final = len(Tsc)
N_XSC: Final = len(Xsc)


# Classes --------------------------------------------------------------------------------------------------------------
class Profile:
    """
    Score tables of a dual-mode profile HMM.

    Attributes:
        tsc: (M+1, 8) float32 transition scores, see ``Tsc``.
        xsc: (5, 2) float32 special-state scores, see ``Xsc`` and ``Move``.
        msc: (M+1, Kp) float32 match emission scores, row 0 unused.
        isc: (M+1, Kp) float32 insert emission scores, rows 0 and M unused.

    Examples:
        >>> gm = Profile.random(Alphabet.AMINO, M=50, L=400)
        >>> gm.transition_score(StateType.N, 0, StateType.B, 0) < 0
        True
    """
    __slots__ = ('_M', '_alphabet', 'tsc', 'xsc', 'msc', 'isc')
    DTYPE: Final = np.float32

    def __init__(self, alphabet: Alphabet, M: int, tsc: np.ndarray = None, xsc: np.ndarray = None,
                 msc: np.ndarray = None, isc: np.ndarray = None):
        if M < 1: raise ProfileError(f"Profile needs at least one node, got M={M}")
        self._M = M
        self._alphabet = alphabet
        self.tsc = self._table(tsc, (M + 1, N_TSC), 'tsc')
        self.xsc = self._table(xsc, (N_XSC, 2), 'xsc')
        self.msc = self._table(msc, (M + 1, alphabet.Kp), 'msc')
        self.isc = self._table(isc, (M + 1, alphabet.Kp), 'isc')

    def _table(self, data, shape: tuple[int, int], name: str) -> np.ndarray:
        if data is None: return np.full(shape, -np.inf, dtype=self.DTYPE)
        data = np.ascontiguousarray(data, dtype=self.DTYPE)
        if data.shape != shape: raise ProfileError(f"{name} has shape {data.shape}, expected {shape}")
        return data

    def __repr__(self): return f"Profile(M={self._M}, alphabet={self._alphabet.name})"

    @property
    def M(self) -> int: return self._M
    @property
    def alphabet(self) -> Alphabet: return self._alphabet

    @classmethod
    def random(cls, alphabet: Alphabet, M: int, L: int = 400, multihit: bool = True,
               rng: np.random.Generator = None) -> 'Profile':
        """
        Samples a valid profile with finite scores on every legal transition.

        Args:
            alphabet: Alphabet of the emissions.
            M: Number of nodes.
            L: Target length used for the N/J/C length model.
            multihit: If False, E->J is impossible.
            rng: Random generator, defaults to ``RESOURCES.rng``.

        Returns:
            A new Profile.
        """
        rng = rng or RESOURCES.rng
        gm = cls(alphabet, M)
        K = alphabet.K
        with np.errstate(divide='ignore'):
            for k in range(1, M):
                gm.tsc[k, [Tsc.MM, Tsc.MI, Tsc.MD]] = np.log(rng.dirichlet((8.0, 1.0, 1.0)))
                gm.tsc[k, [Tsc.IM, Tsc.II]] = np.log(rng.dirichlet((2.0, 1.0)))
                gm.tsc[k, [Tsc.DM, Tsc.DD]] = np.log(rng.dirichlet((2.0, 1.0)))
            gm.tsc[0, [Tsc.MM, Tsc.MD]] = np.log(rng.dirichlet((4.0, 1.0)))
            gm.tsc[:M, Tsc.LM] = np.log(2.0 / (M * (M + 1))) + np.log(np.arange(M, 0, -1))

            # Match/insert emissions as log-odds against a uniform background
            match = rng.dirichlet(np.ones(K), size=M)
            gm.msc[1:, :K] = np.log(match * K)
            gm.isc[1:M, :K] = np.log(rng.dirichlet(np.full(K, 5.0), size=M - 1) * K)
            for x in range(K + 1, alphabet.Kp - 2):
                members = alphabet.degeneracy[x]
                gm.msc[1:, x] = gm.msc[1:, :K][:, members].mean(axis=1)
                gm.isc[1:M, x] = gm.isc[1:M, :K][:, members].mean(axis=1)

            gm.xsc[Xsc.E] = np.log(0.5) if multihit else (-np.inf, 0.0)
            gm.xsc[Xsc.B] = np.log(0.5)
        gm.configure_length(L, multihit)
        return gm

    def configure_length(self, L: int, multihit: bool = True):
        """Sets the N/J/C loop and move scores for an expected target length ``L``."""
        if L < 0: raise ProfileError(f"Target length must be non-negative, got {L}")
        nj = 1.0 if multihit else 0.0
        pmove = (2.0 + nj) / (L + 2.0 + nj)
        ploop = 1.0 - pmove
        with np.errstate(divide='ignore'):
            for x in (Xsc.N, Xsc.J, Xsc.C):
                self.xsc[x] = np.log(ploop), np.log(pmove)
            if not multihit: self.xsc[Xsc.J] = -np.inf

    def transition_score(self, st1: int, k1: int, st2: int, k2: int) -> float:
        """
        Returns the score of the transition ``(st1, k1) -> (st2, k2)``.

        Raises:
            ProfileError: If the profile has no such transition.
        """
        if not (0 <= k1 <= self._M and 0 <= k2 <= self._M):
            raise ProfileError(f"Node out of range for M={self._M}: {k1} -> {k2}")
        sc = _transition_score_kernel(self.tsc, self.xsc, self._M, int(st1), int(k1), int(st2), int(k2))
        if sc != sc:
            raise ProfileError(
                f"No transition {StateType.decode(st1)}{k1 or ''} -> {StateType.decode(st2)}{k2 or ''}")
        return float(sc)

    def emission_score(self, st: int, k: int, x: int) -> float:
        """Returns the emission score of residue ``x`` in state ``st`` at node ``k`` (0 for nonemitters)."""
        if st == StateType.ML or st == StateType.MG: return float(self.msc[k, x])
        if st == StateType.IL or st == StateType.IG: return float(self.isc[k, x])
        return 0.0


# Kernels --------------------------------------------------------------------------------------------------------------
# Plain ints so numba can fold them as compile-time constants
_ML, _MG, _IL, _IG, _DL, _DG, _S, _N, _B, _L, _G, _E, _C, _J, _T = (int(s) for s in list(StateType)[1:])
_MM, _IM, _DM, _LM, _MD, _DD, _MI, _II = (int(t) for t in Tsc)
_XE, _XN, _XJ, _XC, _XB = (int(x) for x in Xsc)
_LOOP, _MOVE = int(Move.LOOP), int(Move.MOVE)


@jit(nopython=True, cache=True, nogil=True)
def _transition_score_kernel(tsc, xsc, M, st1, k1, st2, k2):
    """Transition score lookup; returns NaN when the transition is not in the profile."""
    bad = np.float32(np.nan)
    zero = np.float32(0.0)
    if st1 == _S:
        if st2 == _N: return zero
        return bad
    if st1 == _N:
        if st2 == _N: return xsc[_XN, _LOOP]
        if st2 == _B: return xsc[_XN, _MOVE]
        return bad
    if st1 == _J:
        if st2 == _J: return xsc[_XJ, _LOOP]
        if st2 == _B: return xsc[_XJ, _MOVE]
        return bad
    if st1 == _C:
        if st2 == _C: return xsc[_XC, _LOOP]
        if st2 == _T: return xsc[_XC, _MOVE]
        return bad
    if st1 == _E:
        if st2 == _C: return xsc[_XE, _MOVE]
        if st2 == _J: return xsc[_XE, _LOOP]
        return bad
    if st1 == _B:
        if st2 == _L: return xsc[_XB, _LOOP]
        if st2 == _G: return xsc[_XB, _MOVE]
        return bad
    if st1 == _L:
        if st2 == _ML and 1 <= k2 <= M: return tsc[k2 - 1, _LM]
        return bad
    if st1 == _G:
        if k2 != 1: return bad
        if st2 == _MG: return tsc[0, _MM]
        if st2 == _DG: return tsc[0, _MD]
        return bad

    # Main model: local and glocal flavours never mix
    local1 = st1 == _ML or st1 == _IL or st1 == _DL
    if st2 != _E:
        local2 = st2 == _ML or st2 == _IL or st2 == _DL
        if local1 != local2: return bad
    if st1 == _ML or st1 == _MG:
        if st2 == _E:
            if local1 or k1 == M: return zero
            return bad
        if (st2 == _ML or st2 == _MG) and k2 == k1 + 1: return tsc[k1, _MM]
        if (st2 == _IL or st2 == _IG) and k2 == k1 and k1 < M: return tsc[k1, _MI]
        if (st2 == _DL or st2 == _DG) and k2 == k1 + 1: return tsc[k1, _MD]
        return bad
    if st1 == _IL or st1 == _IG:
        if (st2 == _ML or st2 == _MG) and k2 == k1 + 1: return tsc[k1, _IM]
        if (st2 == _IL or st2 == _IG) and k2 == k1: return tsc[k1, _II]
        return bad
    if st1 == _DL or st1 == _DG:
        if st2 == _E:
            if local1 or k1 == M: return zero
            return bad
        if (st2 == _ML or st2 == _MG) and k2 == k1 + 1: return tsc[k1, _DM]
        if (st2 == _DL or st2 == _DG) and k2 == k1 + 1: return tsc[k1, _DD]
        return bad
    return bad
