from concurrent.futures import ThreadPoolExecutor

import numpy as np

from hmmtrace.lib.resources import RESOURCES, Resources, jit
from hmmtrace.lib.protocols import ProfileLike, CountsLike, MSALike
from hmmtrace.core.alphabet import Alphabet
from hmmtrace.core.hmm import HMM
from hmmtrace.core.msa import MSA
from hmmtrace.core.profile import Profile


class TestResources:
    def test_package(self):
        assert RESOURCES.package == 'hmmtrace'

    def test_has_module(self):
        assert Resources.has_module('numpy')
        assert not Resources.has_module('no_such_module_hmmtrace')

    def test_pool_and_rng(self):
        assert isinstance(RESOURCES.pool, ThreadPoolExecutor)
        assert RESOURCES.pool.submit(sum, [1, 2, 3]).result() == 6
        assert isinstance(RESOURCES.rng, np.random.Generator)
        assert RESOURCES.available_cpus >= 1

    def test_jit_keeps_behaviour(self):
        @jit
        def bare(x): return x + 1

        @jit(nopython=True, cache=False)
        def configured(x): return x * 2

        assert bare(1) == 2
        assert configured(3) == 6


class TestProtocols:
    def test_collaborators_conform(self):
        assert isinstance(Profile(Alphabet.DNA, 2), ProfileLike)
        assert isinstance(HMM(Alphabet.DNA, 2), CountsLike)
        assert isinstance(MSA.from_rows(Alphabet.DNA, [b'AC']), MSALike)
        assert not isinstance(HMM(Alphabet.DNA, 2), ProfileLike)
