"""
Structural protocols for the collaborators a trace is read against.

Any object exposing these attributes can be scored, counted into or converted from, so callers can
bring their own profile, model or alignment implementations.
"""
from typing import Protocol, runtime_checkable


@runtime_checkable
class HasAlphabet(Protocol):
    """Protocol for objects that possess an Alphabet."""
    @property
    def alphabet(self) -> 'Alphabet': ...


@runtime_checkable
class ProfileLike(Protocol):
    """Protocol for a scoring profile: node count and the four score tables."""
    @property
    def M(self) -> int: ...
    @property
    def tsc(self) -> 'np.ndarray': ...
    @property
    def xsc(self) -> 'np.ndarray': ...
    @property
    def msc(self) -> 'np.ndarray': ...
    @property
    def isc(self) -> 'np.ndarray': ...


@runtime_checkable
class CountsLike(Protocol):
    """Protocol for a model accumulating training counts (transitions, match and insert emissions)."""
    @property
    def M(self) -> int: ...
    @property
    def alphabet(self) -> 'Alphabet': ...
    @property
    def t(self) -> 'np.ndarray': ...
    @property
    def mat(self) -> 'np.ndarray': ...
    @property
    def ins(self) -> 'np.ndarray': ...


@runtime_checkable
class MSALike(Protocol):
    """Protocol for a digital multiple sequence alignment with sentinel-padded rows."""
    @property
    def alphabet(self) -> 'Alphabet': ...
    @property
    def ax(self) -> 'np.ndarray': ...
    @property
    def alen(self) -> int: ...
    @property
    def nseq(self) -> int: ...
