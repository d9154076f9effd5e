"""
Module for digital multiple sequence alignments.
"""
from typing import Iterable, Union

import numpy as np

from hmmtrace.core.alphabet import Alphabet


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class MSAError(Exception):
    """Raised when alignment rows are ragged or empty."""


# Classes --------------------------------------------------------------------------------------------------------------
class MSA:
    """
    A digital alignment: one sentinel-padded row per sequence, columns 1..alen.

    Examples:
        >>> msa = MSA.from_rows(Alphabet.DNA, [b'AC-GT', b'ACTGT'])
        >>> msa.nseq, msa.alen
        (2, 5)
    """
    __slots__ = ('_ax', '_names', '_alphabet')

    def __init__(self, ax: np.ndarray, alphabet: Alphabet, names: list[bytes] = None):
        if ax.ndim != 2 or ax.shape[0] == 0: raise MSAError('Alignment must have at least one row')
        self._ax = ax
        self._ax.flags.writeable = False
        self._alphabet = alphabet
        self._names = names if names is not None else [b'seq%d' % (n + 1) for n in range(ax.shape[0])]
        if len(self._names) != ax.shape[0]: raise MSAError('Number of names does not match number of rows')

    @classmethod
    def from_rows(cls, alphabet: Alphabet, rows: Iterable[Union[bytes, str]], names: list[bytes] = None) -> 'MSA':
        """
        Digitizes aligned text rows.

        Raises:
            MSAError: If there are no rows or they differ in length.
        """
        digital = [alphabet.digitize(row) for row in rows]
        if not digital: raise MSAError('Alignment must have at least one row')
        if len({len(row) for row in digital}) != 1: raise MSAError('Alignment rows differ in length')
        return cls(np.stack(digital), alphabet, names)

    def __len__(self): return self.nseq
    def __getitem__(self, item: int) -> np.ndarray: return self._ax[item]
    def __iter__(self): return iter(self._ax)
    def __repr__(self): return f"MSA(nseq={self.nseq}, alen={self.alen})"

    @property
    def alphabet(self) -> Alphabet: return self._alphabet
    @property
    def ax(self) -> np.ndarray: return self._ax
    @property
    def names(self) -> list[bytes]: return self._names
    @property
    def nseq(self) -> int: return self._ax.shape[0]
    @property
    def alen(self) -> int: return self._ax.shape[1] - 2
