"""
State types of a profile traceback and the grammar that connects them.

A profile path always reads ``S -> N -> B -> {L|G} -> ... -> E -> C -> T``, with optional ``E -> J -> B`` loops for
multiple domains. Main-model states come in a local and a glocal flavour which never mix within one domain.
"""
from enum import IntEnum
from typing import Final

import numpy as np


# Classes --------------------------------------------------------------------------------------------------------------
class StateType(IntEnum):
    """State type codes stored in a trace. ``BOGUS`` is only ever returned as a decoding error."""
    BOGUS = 0
    ML = 1
    MG = 2
    IL = 3
    IG = 4
    DL = 5
    DG = 6
    S = 7
    N = 8
    B = 9
    L = 10
    G = 11
    E = 12
    C = 13
    J = 14
    T = 15

    def __str__(self): return self.name

    @classmethod
    def decode(cls, code: int) -> str:
        """Returns the printable name of a state code, or ``'BOGUS'`` for an unknown code."""
        try: return cls(code).name
        except ValueError: return cls.BOGUS.name

    @classmethod
    def encode(cls, name: str) -> 'StateType':
        """Returns the state for a (case-insensitive) name, or ``BOGUS`` for an unknown name."""
        return cls.__members__.get(name.upper(), cls.BOGUS)


# Constants ------------------------------------------------------------------------------------------------------------
N_STATE_TYPES: Final = len(StateType)
MAIN_STATES: Final = frozenset({StateType.ML, StateType.MG, StateType.IL, StateType.IG, StateType.DL, StateType.DG})
MATCH_STATES: Final = frozenset({StateType.ML, StateType.MG})
INSERT_STATES: Final = frozenset({StateType.IL, StateType.IG})
DELETE_STATES: Final = frozenset({StateType.DL, StateType.DG})
LOCAL_STATES: Final = frozenset({StateType.L, StateType.ML, StateType.IL, StateType.DL})
GLOCAL_STATES: Final = frozenset({StateType.G, StateType.MG, StateType.IG, StateType.DG})
FLANK_STATES: Final = frozenset({StateType.N, StateType.C, StateType.J})
NONEMITTERS: Final = frozenset({
    StateType.S, StateType.B, StateType.L, StateType.G, StateType.E, StateType.T, StateType.DL, StateType.DG
})

_GRAMMAR = {
    StateType.S:  (StateType.N,),
    StateType.N:  (StateType.N, StateType.B),
    StateType.B:  (StateType.L, StateType.G),
    StateType.L:  (StateType.ML,),
    StateType.G:  (StateType.MG, StateType.DG),
    StateType.ML: (StateType.ML, StateType.IL, StateType.DL, StateType.E),
    StateType.MG: (StateType.MG, StateType.IG, StateType.DG, StateType.E),
    StateType.IL: (StateType.ML, StateType.IL),
    StateType.IG: (StateType.MG, StateType.IG),
    StateType.DL: (StateType.ML, StateType.DL, StateType.E),
    StateType.DG: (StateType.MG, StateType.DG, StateType.E),
    StateType.E:  (StateType.C, StateType.J),
    StateType.J:  (StateType.J, StateType.B),
    StateType.C:  (StateType.C, StateType.T),
}
LEGAL_TRANSITIONS: Final = np.zeros((N_STATE_TYPES, N_STATE_TYPES), dtype=bool)
for _src, _dsts in _GRAMMAR.items(): LEGAL_TRANSITIONS[_src, list(_dsts)] = True
LEGAL_TRANSITIONS.flags.writeable = False


# Functions ------------------------------------------------------------------------------------------------------------
def is_main(st: int) -> bool: return StateType.ML <= st <= StateType.DG
def is_match(st: int) -> bool: return st == StateType.ML or st == StateType.MG
def is_insert(st: int) -> bool: return st == StateType.IL or st == StateType.IG
def is_delete(st: int) -> bool: return st == StateType.DL or st == StateType.DG
def is_local(st: int) -> bool: return st in LOCAL_STATES
def is_glocal(st: int) -> bool: return st in GLOCAL_STATES
def is_special(st: int) -> bool: return StateType.S <= st <= StateType.T
def is_flank(st: int) -> bool: return st in FLANK_STATES
def is_emitter(st: int) -> bool: return StateType.ML <= st <= StateType.IG or st in FLANK_STATES


def is_legal(st1: int, st2: int) -> bool:
    """Whether the grammar allows ``st1 -> st2``, ignoring node coordinates."""
    if not (0 <= st1 < N_STATE_TYPES and 0 <= st2 < N_STATE_TYPES): return False
    return bool(LEGAL_TRANSITIONS[st1, st2])
