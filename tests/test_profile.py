import numpy as np
import pytest

from hmmtrace.core.alphabet import Alphabet
from hmmtrace.core.profile import Profile, ProfileError, Tsc, Xsc, Move
from hmmtrace.core.states import StateType


class TestProfileInit:
    def test_defaults_impossible(self):
        gm = Profile(Alphabet.DNA, 3)
        assert gm.tsc.shape == (4, 8)
        assert gm.xsc.shape == (5, 2)
        assert gm.msc.shape == gm.isc.shape == (4, 18)
        assert np.all(gm.tsc == -np.inf)

    def test_bad_shape(self):
        with pytest.raises(ProfileError, match="tsc has shape"):
            Profile(Alphabet.DNA, 3, tsc=np.zeros((3, 8)))

    def test_no_nodes(self):
        with pytest.raises(ProfileError):
            Profile(Alphabet.DNA, 0)


class TestRandomProfile:
    def test_legal_transitions_finite(self, amino_profile):
        gm = amino_profile
        assert np.all(np.isfinite(gm.tsc[1:4, [Tsc.MM, Tsc.MI, Tsc.MD, Tsc.IM, Tsc.II, Tsc.DM, Tsc.DD]]))
        assert np.all(np.isfinite(gm.tsc[:4, Tsc.LM]))
        assert np.all(np.isfinite(gm.xsc))
        assert np.all(np.isfinite(gm.msc[1:, :gm.alphabet.K]))

    def test_local_entry_distribution(self, amino_profile):
        assert np.exp(amino_profile.tsc[:4, Tsc.LM].astype(np.float64)).sum() == pytest.approx(1.0, abs=1e-5)

    def test_unihit(self):
        gm = Profile.random(Alphabet.DNA, 3, multihit=False, rng=np.random.default_rng(0))
        assert gm.xsc[Xsc.E, Move.LOOP] == -np.inf
        assert np.all(gm.xsc[Xsc.J] == -np.inf)

    def test_configure_length(self, amino_profile):
        amino_profile.configure_length(97)
        assert np.exp(amino_profile.xsc[Xsc.N, Move.MOVE]) == pytest.approx(3 / 100)
        with pytest.raises(ProfileError):
            amino_profile.configure_length(-1)


class TestTransitionScore:
    def test_specials(self, amino_profile):
        gm = amino_profile
        assert gm.transition_score(StateType.S, 0, StateType.N, 0) == 0.0
        assert gm.transition_score(StateType.B, 0, StateType.L, 0) == gm.xsc[Xsc.B, Move.LOOP]
        assert gm.transition_score(StateType.G, 0, StateType.DG, 1) == gm.tsc[0, Tsc.MD]
        assert gm.transition_score(StateType.L, 0, StateType.ML, 3) == gm.tsc[2, Tsc.LM]

    def test_main_model(self, amino_profile):
        gm = amino_profile
        assert gm.transition_score(StateType.MG, 2, StateType.IG, 2) == gm.tsc[2, Tsc.MI]
        assert gm.transition_score(StateType.DL, 1, StateType.ML, 2) == gm.tsc[1, Tsc.DM]
        assert gm.transition_score(StateType.ML, 2, StateType.E, 0) == 0.0
        assert gm.transition_score(StateType.DG, 4, StateType.E, 0) == 0.0

    @pytest.mark.parametrize('st1, k1, st2, k2', [
        (StateType.MG, 2, StateType.E, 0),
        (StateType.ML, 1, StateType.MG, 2),
        (StateType.MG, 4, StateType.IG, 4),
        (StateType.G, 0, StateType.MG, 2),
        (StateType.ML, 1, StateType.ML, 3),
        (StateType.N, 0, StateType.C, 0),
    ])
    def test_illegal(self, amino_profile, st1, k1, st2, k2):
        with pytest.raises(ProfileError, match="No transition"):
            amino_profile.transition_score(st1, k1, st2, k2)

    def test_node_out_of_range(self, amino_profile):
        with pytest.raises(ProfileError, match="out of range"):
            amino_profile.transition_score(StateType.ML, 4, StateType.ML, 5)

    def test_emission_score(self, amino_profile):
        assert amino_profile.emission_score(StateType.ML, 1, 0) == amino_profile.msc[1, 0]
        assert amino_profile.emission_score(StateType.IG, 2, 3) == amino_profile.isc[2, 3]
        assert amino_profile.emission_score(StateType.C, 0, 3) == 0.0
