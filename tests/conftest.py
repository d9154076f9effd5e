import numpy as np
import pytest

from hmmtrace.core.alphabet import Alphabet
from hmmtrace.core.profile import Profile
from hmmtrace.core.states import StateType
from hmmtrace.containers.trace import Trace


# Paths used across the suite, as (state, k, i[, pp]) steps
LOCAL_PATH = [('S', 0, 0), ('N', 0, 0), ('B', 0, 0), ('L', 0, 0), ('ML', 1, 1), ('ML', 2, 2),
              ('E', 0, 0), ('C', 0, 0), ('T', 0, 0)]
# N and C flanking residues, an insert and a trailing delete; exits glocally from node 4
GLOCAL_PATH = [('S', 0, 0), ('N', 0, 0), ('N', 0, 1), ('B', 0, 0), ('G', 0, 0), ('MG', 1, 2), ('MG', 2, 3),
               ('IG', 2, 4), ('MG', 3, 5), ('DG', 4, 0), ('E', 0, 0), ('C', 0, 0), ('C', 0, 6), ('T', 0, 0)]
TWO_DOMAIN_PATH = [('S', 0, 0), ('N', 0, 0), ('B', 0, 0), ('L', 0, 0), ('ML', 1, 1), ('ML', 2, 2), ('E', 0, 0),
                   ('J', 0, 0), ('J', 0, 3), ('B', 0, 0), ('G', 0, 0), ('MG', 1, 4), ('MG', 2, 5), ('E', 0, 0),
                   ('C', 0, 0), ('T', 0, 0)]


def make_trace(steps, with_pp: bool = False) -> Trace:
    tr = Trace(with_pp=with_pp)
    for name, k, i, *pp in steps: tr.append(StateType[name], k, i, pp[0] if pp else None)
    return tr


@pytest.fixture
def build():
    return make_trace


@pytest.fixture
def local_trace():
    return make_trace(LOCAL_PATH)


@pytest.fixture
def glocal_trace():
    return make_trace(GLOCAL_PATH)


@pytest.fixture
def two_domain_trace():
    return make_trace(TWO_DOMAIN_PATH)


@pytest.fixture
def amino_profile():
    return Profile.random(Alphabet.AMINO, M=4, L=6, rng=np.random.default_rng(42))


@pytest.fixture
def amino_dsq():
    return Alphabet.AMINO.digitize(b'ACDEFG')
