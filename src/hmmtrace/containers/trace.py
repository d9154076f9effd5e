"""
Module for profile tracebacks.

A trace is the explicit state path aligning one digital sequence to a profile. It is stored as parallel numpy
arrays (state, node, position, posterior) with an explicit length/capacity pair, so one buffer can be reused for
millions of sequences without reallocating.

A trace usually only makes sense in a triple with a profile (nodes 1..M) and a digital sequence (positions 1..L).
Emission on N, C and J happens on the transition, and is attributed to the destination: the first N, C or J of a
run is a nonemitter, every later one emits one residue.
"""
from sys import stdout
from typing import Final, NamedTuple, Generator, TextIO, Union

import numpy as np

from hmmtrace.core.states import StateType, NONEMITTERS, FLANK_STATES, N_STATE_TYPES, is_main
from hmmtrace.lib.protocols import HasAlphabet


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class TraceError(Exception):
    """Base class for trace errors."""


class TraceFormatError(TraceError, ValueError):
    """Raised when a trace (or the input it is built from) is malformed."""


class TraceAllocationError(TraceError, MemoryError):
    """Raised when a trace cannot grow. The trace is left unchanged at its previous length."""


# Classes --------------------------------------------------------------------------------------------------------------
class Step(NamedTuple):
    """One step of a trace."""
    st: StateType
    k: int
    i: int
    pp: float


class Domain(NamedTuple):
    """
    One indexed domain: trace span of its B and E, first/last match-emitted residue (0 if none), first/last node.
    """
    tfrom: int
    tto: int
    sqfrom: int
    sqto: int
    hmmfrom: int
    hmmto: int


class Trace:
    """
    Growable struct-of-arrays storage for one traceback and its domain index.

    Traces from dynamic programming are appended terminal-to-start, then reversed and indexed. Traces built
    forward (from an alignment, or by hand) only need indexing.

    Examples:
        >>> tr = Trace()
        >>> for st, k, i in [('S', 0, 0), ('N', 0, 0), ('B', 0, 0), ('L', 0, 0), ('ML', 1, 1), ('ML', 2, 2),
        ...                  ('E', 0, 0), ('C', 0, 0), ('T', 0, 0)]:
        ...     _ = tr.append(StateType[st], k, i)
        >>> tr.index().domain(0)
        Domain(tfrom=2, tto=6, sqfrom=1, sqto=2, hmmfrom=1, hmmto=2)
    """
    __slots__ = ('_n', '_st', '_k', '_i', '_pp', '_M', '_L',
                 '_ndom', '_tfrom', '_tto', '_sqfrom', '_sqto', '_hmmfrom', '_hmmto')
    INITIAL_ALLOC: Final = 16
    INITIAL_DOMAIN_ALLOC: Final = 4
    ST_DTYPE: Final = np.int8
    COORD_DTYPE: Final = np.int32
    PP_DTYPE: Final = np.float32

    def __init__(self, with_pp: bool = False, nalloc: int = INITIAL_ALLOC, ndomalloc: int = INITIAL_DOMAIN_ALLOC):
        """
        Creates an empty trace.

        Args:
            with_pp: Whether to track a posterior probability per emitted residue.
            nalloc: Initial step capacity.
            ndomalloc: Initial domain capacity.
        """
        nalloc, ndomalloc = max(1, nalloc), max(1, ndomalloc)
        self._n = 0
        self._M = 0
        self._L = 0
        self._ndom = 0
        self._st = np.zeros(nalloc, dtype=self.ST_DTYPE)
        self._k = np.zeros(nalloc, dtype=self.COORD_DTYPE)
        self._i = np.zeros(nalloc, dtype=self.COORD_DTYPE)
        self._pp = np.zeros(nalloc, dtype=self.PP_DTYPE) if with_pp else None
        self._tfrom, self._tto, self._sqfrom, self._sqto, self._hmmfrom, self._hmmto = (
            np.zeros(ndomalloc, dtype=self.COORD_DTYPE) for _ in range(6))

    def __len__(self): return self._n
    def __repr__(self):
        return f"Trace(N={self._n}, M={self._M}, L={self._L}, ndom={self._ndom}, pp={self._pp is not None})"

    def __getitem__(self, z: int) -> Step:
        if z < 0: z += self._n
        if not 0 <= z < self._n: raise IndexError(f"Step {z} out of range for trace of length {self._n}")
        pp = float(self._pp[z]) if self._pp is not None else 0.0
        return Step(StateType(self._st[z]), int(self._k[z]), int(self._i[z]), pp)

    def __iter__(self) -> Generator[Step, None, None]:
        for z in range(self._n): yield self[z]

    # Read access -------------------------------------------------------------------------------------------------
    @property
    def N(self) -> int: return self._n
    @property
    def nalloc(self) -> int: return len(self._st)
    @property
    def M(self) -> int:
        """Largest node index appended so far."""
        return self._M
    @property
    def L(self) -> int:
        """Largest sequence position appended so far."""
        return self._L
    @property
    def st(self) -> np.ndarray: return self._st[:self._n]
    @property
    def k(self) -> np.ndarray: return self._k[:self._n]
    @property
    def i(self) -> np.ndarray: return self._i[:self._n]
    @property
    def pp(self) -> Union[np.ndarray, None]: return self._pp[:self._n] if self._pp is not None else None
    @property
    def has_pp(self) -> bool: return self._pp is not None
    @property
    def ndom(self) -> int: return self._ndom
    @property
    def ndomalloc(self) -> int: return len(self._tfrom)
    @property
    def tfrom(self) -> np.ndarray: return self._tfrom[:self._ndom]
    @property
    def tto(self) -> np.ndarray: return self._tto[:self._ndom]
    @property
    def sqfrom(self) -> np.ndarray: return self._sqfrom[:self._ndom]
    @property
    def sqto(self) -> np.ndarray: return self._sqto[:self._ndom]
    @property
    def hmmfrom(self) -> np.ndarray: return self._hmmfrom[:self._ndom]
    @property
    def hmmto(self) -> np.ndarray: return self._hmmto[:self._ndom]

    def domain_count(self) -> int: return self._ndom

    def domain(self, which: int) -> Domain:
        """Returns the indexed domain ``which`` (0-based)."""
        if not 0 <= which < self._ndom:
            raise IndexError(f"Domain {which} out of range; trace has {self._ndom} indexed domains")
        return Domain(int(self._tfrom[which]), int(self._tto[which]), int(self._sqfrom[which]),
                      int(self._sqto[which]), int(self._hmmfrom[which]), int(self._hmmto[which]))

    def domains(self) -> Generator[Domain, None, None]:
        for d in range(self._ndom): yield self.domain(d)

    def domain_coords(self, which: int) -> tuple[int, int, int, int]:
        """Returns ``(sqfrom, sqto, hmmfrom, hmmto)`` of domain ``which``."""
        d = self.domain(which)
        return d.sqfrom, d.sqto, d.hmmfrom, d.hmmto

    def state_use_counts(self) -> np.ndarray:
        """Number of steps in each state type, indexed by ``StateType`` code."""
        return np.bincount(self.st, minlength=N_STATE_TYPES)

    # Storage -----------------------------------------------------------------------------------------------------
    def grow(self) -> 'Trace':
        """Makes room for at least one more step, doubling capacity when full."""
        if self._n < self.nalloc: return self
        return self.grow_to(2 * self.nalloc)

    def grow_to(self, n: int) -> 'Trace':
        """
        Ensures capacity for at least ``n`` steps. Never shrinks.

        Raises:
            TraceAllocationError: If the arrays cannot be reallocated; the trace is unchanged.
        """
        if n <= self.nalloc: return self
        try:
            st, k, i = self._resized(self._st, n), self._resized(self._k, n), self._resized(self._i, n)
            pp = self._resized(self._pp, n) if self._pp is not None else None
        except MemoryError as e:
            raise TraceAllocationError(f"Failed to grow trace to {n} steps") from e
        self._st, self._k, self._i, self._pp = st, k, i, pp
        return self

    def grow_index(self) -> 'Trace':
        """Makes room for at least one more domain, doubling capacity when full."""
        if self._ndom < self.ndomalloc: return self
        return self.grow_index_to(2 * self.ndomalloc)

    def grow_index_to(self, ndom: int) -> 'Trace':
        """
        Ensures capacity for at least ``ndom`` domains. Never shrinks.

        Raises:
            TraceAllocationError: If the arrays cannot be reallocated; the index is unchanged.
        """
        if ndom <= self.ndomalloc: return self
        try:
            arrays = [self._resized(a, ndom) for a in
                      (self._tfrom, self._tto, self._sqfrom, self._sqto, self._hmmfrom, self._hmmto)]
        except MemoryError as e:
            raise TraceAllocationError(f"Failed to grow domain index to {ndom} domains") from e
        self._tfrom, self._tto, self._sqfrom, self._sqto, self._hmmfrom, self._hmmto = arrays
        return self

    @staticmethod
    def _resized(a: np.ndarray, n: int) -> np.ndarray:
        out = np.zeros(n, dtype=a.dtype)
        out[:len(a)] = a
        return out

    def reuse(self) -> 'Trace':
        """Empties the trace for the next sequence, keeping its allocations."""
        self._n = self._M = self._L = self._ndom = 0
        return self

    def truncate(self, n: int) -> 'Trace':
        """Drops every step from ``n`` on. Maxima are recomputed; the domain index is cleared."""
        if not 0 <= n <= self._n: raise IndexError(f"Cannot truncate trace of length {self._n} to {n}")
        self._n = n
        self._M = int(self.k.max()) if n else 0
        self._L = int(self.i.max()) if n else 0
        self._ndom = 0
        return self

    def copy(self) -> 'Trace':
        other = Trace(with_pp=self._pp is not None, nalloc=self.nalloc, ndomalloc=self.ndomalloc)
        n, d = self._n, self._ndom
        other._st[:n], other._k[:n], other._i[:n] = self.st, self.k, self.i
        if self._pp is not None: other._pp[:n] = self.pp
        for src, dst in zip((self._tfrom, self._tto, self._sqfrom, self._sqto, self._hmmfrom, self._hmmto),
                            (other._tfrom, other._tto, other._sqfrom, other._sqto, other._hmmfrom, other._hmmto)):
            dst[:d] = src[:d]
        other._n, other._M, other._L, other._ndom = n, self._M, self._L, d
        return other

    # Construction ------------------------------------------------------------------------------------------------
    def append(self, st: int, k: int = 0, i: int = 0, pp: float = None) -> 'Trace':
        """
        Appends one step.

        Coordinates that a state cannot carry are stored as 0: ``k`` only for main-model states, ``i`` only for
        match, insert, N, C and J states. The posterior is stored only on emitting steps.

        Args:
            st: State type.
            k: Node index (1..M) for main-model states.
            i: Emitted sequence position (1..L), or 0.
            pp: Posterior probability of the emitted residue; requires a trace created ``with_pp``.

        Raises:
            TraceFormatError: On an unknown state or impossible coordinates. Nothing is appended.
            TraceAllocationError: If the trace cannot grow.
        """
        try: st = StateType(st)
        except ValueError: raise TraceFormatError(f"No such state type {st!r}; cannot append") from None
        if st == StateType.BOGUS: raise TraceFormatError("Cannot append a BOGUS state")
        if pp is not None and self._pp is None:
            raise TraceFormatError("Trace was created without posterior tracking; cannot append a posterior")

        if st in NONEMITTERS: i = 0
        if not is_main(st): k = 0
        elif k < 1: raise TraceFormatError(f"{st.name} step needs a node index >= 1, got {k}")
        if i < 0: raise TraceFormatError(f"Negative sequence position {i} for {st.name}")
        if i == 0 and st not in NONEMITTERS and st not in FLANK_STATES:
            raise TraceFormatError(f"{st.name}{k} step needs a sequence position >= 1")

        self.grow()
        z = self._n
        self._st[z], self._k[z], self._i[z] = st, k, i
        if self._pp is not None: self._pp[z] = (pp or 0.0) if i > 0 else 0.0
        if k > self._M: self._M = k
        if i > self._L: self._L = i
        self._n += 1
        return self

    def reverse(self) -> 'Trace':
        """
        Reverses the steps in place, turning a terminal-to-start backtrace into canonical order.
        Applying it twice restores the original arrays. The domain index is cleared.
        """
        n = self._n
        for a in (self._st, self._k, self._i, self._pp):
            if a is not None: a[:n] = a[n - 1::-1].copy() if n else a[:0]
        self._ndom = 0
        return self

    def index(self) -> 'Trace':
        """
        Builds the domain index with one forward scan; domains come out ordered by trace position.

        Raises:
            TraceFormatError: If the trace is not forward-oriented, or a B/E is unmatched.
        """
        self._ndom = 0
        n = self._n
        if n == 0: return self
        if self._st[0] != StateType.S:
            raise TraceFormatError(f"Trace starts with {StateType.decode(self._st[0])}, not S; reverse it first")
        ndom, open_z = 0, -1
        st, k, i = self.st, self.k, self.i
        for z in range(n):
            s = st[z]
            if s == StateType.B:
                if open_z >= 0: raise TraceFormatError(f"B at step {z} while domain opened at step {open_z} is open")
                if ndom == self.ndomalloc: self.grow_index_to(2 * ndom)
                open_z = z
                self._tfrom[ndom] = z
                self._sqfrom[ndom] = self._sqto[ndom] = self._hmmfrom[ndom] = self._hmmto[ndom] = 0
            elif s == StateType.E:
                if open_z < 0: raise TraceFormatError(f"E at step {z} without a matching B")
                self._tto[ndom] = z
                ndom += 1
                open_z = -1
            elif is_main(s):
                if open_z < 0: raise TraceFormatError(f"Main-model step {z} lies outside any B..E domain")
                if self._hmmfrom[ndom] == 0: self._hmmfrom[ndom] = k[z]
                self._hmmto[ndom] = k[z]
                if s == StateType.ML or s == StateType.MG:
                    if self._sqfrom[ndom] == 0: self._sqfrom[ndom] = i[z]
                    self._sqto[ndom] = i[z]
        if open_z >= 0: raise TraceFormatError(f"B at step {open_z} has no matching E")
        self._ndom = ndom
        return self

    # Output ------------------------------------------------------------------------------------------------------
    def dump(self, handle: TextIO = stdout, gm=None, dsq: np.ndarray = None):
        """
        Writes one line per step. With a profile and digital sequence, each line is annotated with the
        transition score to the next step, the emission score and the emitted residue.
        """
        annotate = gm is not None and dsq is not None
        if annotate and not isinstance(gm, HasAlphabet):
            raise TypeError(f"Expected a profile with an alphabet, got {type(gm).__name__}")
        header = f"{'z':>5} {'st':>3} {'k':>5} {'i':>6}"
        if self._pp is not None: header += f" {'pp':>6}"
        if annotate: header += f" {'transit':>9} {'emission':>9} x"
        handle.write(header + '\n')
        total = 0.0
        for z, step in enumerate(self):
            line = f"{z:5d} {step.st.name:>3} {step.k:5d} {step.i:6d}"
            if self._pp is not None: line += f" {step.pp:6.4f}"
            if annotate:
                tsc = gm.transition_score(step.st, step.k, self._st[z + 1], self._k[z + 1]) if z + 1 < self._n else 0.0
                esc = gm.emission_score(step.st, step.k, dsq[step.i]) if step.i else 0.0
                total += tsc + esc
                sym = gm.alphabet.symbol(dsq[step.i]) if step.i else '-'
                line += f" {tsc:9.4f} {esc:9.4f} {sym}"
            handle.write(line + '\n')
        handle.write(f"# M={self._M} L={self._L} ndom={self._ndom}")
        handle.write(f" score={total:.4f}\n" if annotate else '\n')
