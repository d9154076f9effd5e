"""
Module for representing digital biological alphabets.

Symbols are laid out as ``canonical | gap | degenerate | nonresidue | missing`` so that every class of symbol
is a contiguous range of codes. Digital sequences carry a sentinel at index 0 and L+1, making residue
coordinates run 1..L.
"""
from typing import Union, Final, ClassVar

import numpy as np


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class AlphabetError(Exception):
    """Raised when an alphabet is invalid or a text cannot be digitized with it."""


# Classes --------------------------------------------------------------------------------------------------------------
class Alphabet:
    """
    A digital alphabet of ASCII symbols with gap, degenerate, nonresidue and missing-data codes.

    Examples:
        >>> dsq = Alphabet.DNA.digitize(b'ACGN')
        >>> dsq[1:-1]
        array([ 0,  1,  2, 15], dtype=uint8)
    """
    __slots__ = ('_name', '_symbols', '_K', '_lookup_table', '_degeneracy', '_n_degenerate')
    DTYPE: Final = np.uint8
    SENTINEL: Final = np.iinfo(DTYPE).max
    MAX_LEN: Final = SENTINEL
    ENCODING: Final = 'ascii'
    GAP: Final = b'-'
    NONRESIDUE: Final = b'*'
    MISSING: Final = b'~'
    GAP_ALIASES: Final = b'._'

    DNA: ClassVar['Alphabet']
    RNA: ClassVar['Alphabet']
    AMINO: ClassVar['Alphabet']

    def __init__(self, canonical: bytes, degenerate: dict[bytes, bytes] = None, name: str = None):
        """
        Initializes an Alphabet.

        Args:
            canonical: The canonical residue symbols, in code order.
            degenerate: Mapping of each degenerate symbol to the canonical symbols it stands for.
            name: Optional display name.

        Raises:
            AlphabetError: If symbols are not ASCII, collide with the reserved symbols, repeat, or a degenerate
                symbol maps to a non-canonical residue.
        """
        degenerate = degenerate or {}
        symbols = canonical.upper() + self.GAP + b''.join(degenerate).upper() + self.NONRESIDUE + self.MISSING
        if not symbols.isascii(): raise AlphabetError('Alphabet symbols must be a valid ASCII string')
        if len(symbols) > self.MAX_LEN:
            raise AlphabetError(f'Alphabet size cannot exceed {self.MAX_LEN} symbols ({self.DTYPE})')
        if len(set(symbols)) != len(symbols): raise AlphabetError('Alphabet contains duplicate symbols')

        self._name = name or canonical.decode(self.ENCODING)
        self._symbols: np.ndarray = np.frombuffer(symbols, dtype=self.DTYPE)
        self._K = len(canonical)

        # Lookup table from ASCII to code, both cases
        self._lookup_table = np.full(256, self.SENTINEL, dtype=self.DTYPE)
        codes = np.arange(len(symbols), dtype=self.DTYPE)
        self._lookup_table[np.frombuffer(symbols, dtype=self.DTYPE)] = codes
        self._lookup_table[np.frombuffer(symbols.lower(), dtype=self.DTYPE)] = codes
        self._lookup_table[np.frombuffer(self.GAP_ALIASES, dtype=self.DTYPE)] = self._K

        # Degeneracy matrix: row x marks the canonical residues symbol x may stand for
        self._degeneracy = np.zeros((len(symbols), self._K), dtype=bool)
        self._degeneracy[np.arange(self._K), np.arange(self._K)] = True
        for offset, (sym, members) in enumerate(degenerate.items()):
            member_codes = self._lookup_table[np.frombuffer(members.upper(), dtype=self.DTYPE)]
            if np.any(member_codes >= self._K):
                raise AlphabetError(f"Degenerate symbol {sym!r} maps to non-canonical residues {members!r}")
            self._degeneracy[self._K + 1 + offset, member_codes] = True
        self._degeneracy.flags.writeable = False
        self._n_degenerate = self._degeneracy.sum(axis=1)

    def __len__(self): return self._K
    def __iter__(self): return iter(self._symbols[:self._K])
    def __getitem__(self, item): return self._symbols[item]
    def __repr__(self): return f"Alphabet({self._name}, K={self._K}, Kp={self.Kp})"

    def __contains__(self, item):
        try:
            if isinstance(item, (int, np.integer)): return 0 <= item < self.Kp
            if isinstance(item, (str, bytes)):
                if len(item) != 1: return False
                val = ord(item) if isinstance(item, str) else item[0]
                return self._lookup_table[val] != self.SENTINEL
        except (IndexError, ValueError, TypeError):
            pass
        return False

    def __eq__(self, other):
        if self is other: return True
        if not isinstance(other, Alphabet): return False
        return self._K == other._K and np.array_equal(self._symbols, other._symbols)

    def __hash__(self): return hash(self._symbols.tobytes())

    @property
    def name(self) -> str: return self._name
    @property
    def K(self) -> int:
        """Number of canonical residues."""
        return self._K
    @property
    def Kp(self) -> int:
        """Total number of digital codes, including gap, degenerate, nonresidue and missing."""
        return len(self._symbols)
    @property
    def gap(self) -> int: return self._K
    @property
    def nonresidue(self) -> int: return self.Kp - 2
    @property
    def missing(self) -> int: return self.Kp - 1
    @property
    def degeneracy(self) -> np.ndarray:
        """Boolean (Kp, K) matrix; row x marks the canonical residues symbol x stands for."""
        return self._degeneracy

    def is_canonical(self, x: int) -> bool: return 0 <= x < self._K
    def is_degenerate(self, x: int) -> bool: return self._K < x < self.Kp - 2
    def is_residue(self, x: int) -> bool: return self.is_canonical(x) or self.is_degenerate(x)
    def is_gap(self, x: int) -> bool: return x == self._K
    def is_missing(self, x: int) -> bool: return x == self.Kp - 1

    def symbol(self, x: int) -> str:
        """Returns the display character for digital code ``x``."""
        if not 0 <= x < self.Kp: return '?'
        return chr(self._symbols[x])

    def digitize(self, text: Union[bytes, str]) -> np.ndarray:
        """
        Converts text to a sentinel-padded digital sequence.

        Args:
            text: The sequence (or aligned row) as bytes or an ASCII string.

        Returns:
            A uint8 array of length len(text) + 2 with sentinels at both ends.

        Raises:
            AlphabetError: If the text contains symbols outside the alphabet.
        """
        if isinstance(text, str): text = text.encode(self.ENCODING)
        codes = self._lookup_table[np.frombuffer(text, dtype=self.DTYPE)]
        if np.any(bad := codes == self.SENTINEL):
            pos = int(np.argmax(bad))
            raise AlphabetError(f"Invalid symbol {chr(text[pos])!r} at position {pos + 1} for {self._name} alphabet")
        dsq = np.empty(len(codes) + 2, dtype=self.DTYPE)
        dsq[0] = dsq[-1] = self.SENTINEL
        dsq[1:-1] = codes
        return dsq

    def textize(self, dsq: np.ndarray) -> bytes:
        """Converts a sentinel-padded digital sequence back to bytes."""
        return self._symbols[dsq[1:-1]].tobytes()

    def count(self, counts: np.ndarray, x: int, wt: float = 1.0):
        """
        Adds a weighted observation of residue ``x`` to a K-vector of counts.

        Degenerate residues are split evenly over the canonical residues they stand for; gaps, nonresidues
        and missing data are not counted.
        """
        if self.is_canonical(x): counts[x] += wt
        elif self.is_degenerate(x): counts[self._degeneracy[x]] += wt / self._n_degenerate[x]


# Constants ------------------------------------------------------------------------------------------------------------
Alphabet.DNA = Alphabet(b'ACGT', {
    b'R': b'AG', b'Y': b'CT', b'M': b'AC', b'K': b'GT', b'S': b'CG', b'W': b'AT',
    b'H': b'ACT', b'B': b'CGT', b'V': b'ACG', b'D': b'AGT', b'N': b'ACGT'
}, name='DNA')
Alphabet.RNA = Alphabet(b'ACGU', {
    b'R': b'AG', b'Y': b'CU', b'M': b'AC', b'K': b'GU', b'S': b'CG', b'W': b'AU',
    b'H': b'ACU', b'B': b'CGU', b'V': b'ACG', b'D': b'AGU', b'N': b'ACGU'
}, name='RNA')
Alphabet.AMINO = Alphabet(b'ACDEFGHIKLMNPQRSTVWY', {
    b'B': b'ND', b'J': b'IL', b'Z': b'QE', b'O': b'K', b'U': b'C', b'X': b'ACDEFGHIKLMNPQRSTVWY'
}, name='amino')
