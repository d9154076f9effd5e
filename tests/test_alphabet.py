import numpy as np
import pytest
from hmmtrace.core.alphabet import Alphabet, AlphabetError

class TestAlphabetInit:
    def test_valid_init(self):
        alpha = Alphabet(b'ACGT')
        assert len(alpha) == alpha.K == 4
        assert alpha.Kp == 7
        assert b'A' in alpha
        assert b'Z' not in alpha

    def test_init_invalid_ascii(self):
        with pytest.raises(AlphabetError, match="valid ASCII"):
            Alphabet(b'ACG\xff')

    def test_init_duplicates(self):
        with pytest.raises(AlphabetError, match="duplicate"):
            Alphabet(b'AACGT')

    def test_init_reserved_symbol(self):
        with pytest.raises(AlphabetError, match="duplicate"):
            Alphabet(b'AC-')

    def test_degenerate_must_map_to_canonical(self):
        with pytest.raises(AlphabetError, match="non-canonical"):
            Alphabet(b'ACGT', {b'N': b'ACGU'})

    def test_layout(self):
        dna = Alphabet.DNA
        assert dna.Kp == 18
        assert dna.gap == 4
        assert dna.nonresidue == 16
        assert dna.missing == 17
        assert dna.symbol(dna.gap) == '-'
        assert dna.symbol(15) == 'N'
        assert dna.symbol(99) == '?'

    def test_amino(self):
        amino = Alphabet.AMINO
        assert amino.K == 20
        assert amino.Kp == 29
        assert amino.degeneracy[amino.digitize(b'X')[1]].all()


class TestAlphabetDigitize:
    def test_sentinels(self):
        dsq = Alphabet.DNA.digitize(b'ACGT')
        assert len(dsq) == 6
        assert dsq[0] == dsq[-1] == Alphabet.SENTINEL
        np.testing.assert_array_equal(dsq[1:-1], [0, 1, 2, 3])

    def test_case_and_gap_aliases(self):
        alpha = Alphabet.DNA
        np.testing.assert_array_equal(alpha.digitize('ac.g_'), alpha.digitize(b'AC-G-'))
        assert alpha.textize(alpha.digitize(b'ac.g')) == b'AC-G'

    def test_invalid_symbol(self):
        with pytest.raises(AlphabetError, match="Invalid symbol 'Z' at position 3"):
            Alphabet.DNA.digitize(b'ACZ')

    def test_predicates(self):
        alpha = Alphabet.DNA
        a, gap, n, star, missing = alpha.digitize(b'A-N*~')[1:-1]
        assert alpha.is_canonical(a) and alpha.is_residue(a)
        assert alpha.is_gap(gap) and not alpha.is_residue(gap)
        assert alpha.is_degenerate(n) and alpha.is_residue(n)
        assert not alpha.is_residue(star) and not alpha.is_gap(star)
        assert alpha.is_missing(missing)


class TestAlphabetCount:
    def test_canonical(self):
        counts = np.zeros(4)
        Alphabet.DNA.count(counts, 2, 0.5)
        np.testing.assert_array_equal(counts, [0, 0, 0.5, 0])

    def test_degenerate_split(self):
        alpha = Alphabet.DNA
        counts = np.zeros(4)
        alpha.count(counts, alpha.digitize(b'R')[1])
        np.testing.assert_allclose(counts, [0.5, 0, 0.5, 0])

    def test_gap_not_counted(self):
        counts = np.zeros(4)
        Alphabet.DNA.count(counts, Alphabet.DNA.gap)
        assert counts.sum() == 0
