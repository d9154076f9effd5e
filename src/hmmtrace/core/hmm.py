"""
Module for the core-model count tables that traces are counted into during model estimation.
"""
from enum import IntEnum
from typing import Final

import numpy as np

from hmmtrace.core.alphabet import Alphabet


# Constants ------------------------------------------------------------------------------------------------------------
class Tcount(IntEnum):
    """Columns of ``HMM.t``. Row 0 is the begin node: ``MM``/``MD`` there count entries into M1/D1."""
    MM = 0
    MI = 1
    MD = 2
    IM = 3
    II = 4
    DM = 5
    DD = 6


N_TCOUNT: Final = len(Tcount)


# Classes --------------------------------------------------------------------------------------------------------------
class HMM:
    """
    Count tables of a core profile HMM with nodes 1..M.

    Attributes:
        t: (M+1, 7) transition counts, see ``Tcount``.
        mat: (M+1, K) match emission counts, row 0 unused.
        ins: (M+1, K) insert emission counts, rows 0 and M unused.
    """
    __slots__ = ('_M', '_alphabet', 't', 'mat', 'ins')
    DTYPE: Final = np.float64

    def __init__(self, alphabet: Alphabet, M: int):
        if M < 1: raise ValueError(f"Model needs at least one node, got M={M}")
        self._M = M
        self._alphabet = alphabet
        self.t = np.zeros((M + 1, N_TCOUNT), dtype=self.DTYPE)
        self.mat = np.zeros((M + 1, alphabet.K), dtype=self.DTYPE)
        self.ins = np.zeros((M + 1, alphabet.K), dtype=self.DTYPE)

    def __repr__(self): return f"HMM(M={self._M}, alphabet={self._alphabet.name})"

    @property
    def M(self) -> int: return self._M
    @property
    def alphabet(self) -> Alphabet: return self._alphabet

    def zero(self) -> 'HMM':
        """Resets every count to zero, in place."""
        self.t.fill(0.0)
        self.mat.fill(0.0)
        self.ins.fill(0.0)
        return self

    def scale(self, x: float) -> 'HMM':
        """Multiplies every count by ``x``, in place."""
        self.t *= x
        self.mat *= x
        self.ins *= x
        return self

    def total(self) -> float:
        """Total weight of emission counts, a quick check of how much data has been counted."""
        return float(self.mat.sum() + self.ins.sum())
