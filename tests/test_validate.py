import pytest

from hmmtrace.core.alphabet import Alphabet
from hmmtrace.containers.trace import Trace
from hmmtrace.engines.validate import validate, is_valid, TraceValidationError


class TestValidateAccepts:
    def test_empty(self):
        validate(Trace())
        assert is_valid(Trace())

    def test_local(self, local_trace):
        validate(local_trace, Alphabet.AMINO, Alphabet.AMINO.digitize(b'AC'))

    def test_glocal_with_flanks(self, glocal_trace, amino_dsq):
        validate(glocal_trace, Alphabet.AMINO, amino_dsq)

    def test_two_domains(self, two_domain_trace):
        validate(two_domain_trace, Alphabet.DNA, Alphabet.DNA.digitize(b'ACGTA'))

    def test_posteriors(self, build):
        validate(build([('S', 0, 0), ('N', 0, 0), ('B', 0, 0), ('L', 0, 0), ('ML', 1, 1, 0.25),
                        ('IL', 1, 2, 1.0), ('ML', 2, 3, 0.0), ('E', 0, 0), ('C', 0, 0), ('T', 0, 0)], with_pp=True))

    def test_local_entry_anywhere(self, build):
        validate(build([('S', 0, 0), ('N', 0, 0), ('B', 0, 0), ('L', 0, 0), ('ML', 3, 1), ('DL', 4, 0),
                        ('ML', 5, 2), ('E', 0, 0), ('C', 0, 0), ('T', 0, 0)]))


class TestValidateRejects:
    @pytest.mark.parametrize('steps, match', [
        ([('S', 0, 0), ('N', 0, 0), ('B', 0, 0), ('L', 0, 0), ('ML', 1, 1), ('E', 0, 0)], 'too short'),
        ([('N', 0, 0), ('N', 0, 0), ('B', 0, 0), ('L', 0, 0), ('ML', 1, 1), ('E', 0, 0), ('C', 0, 0),
          ('T', 0, 0)], 'expected S'),
        ([('S', 0, 0), ('N', 0, 0), ('B', 0, 0), ('L', 0, 0), ('MG', 1, 1), ('E', 0, 0), ('C', 0, 0),
          ('T', 0, 0)], 'illegal transition from L'),
        ([('S', 0, 0), ('N', 0, 0), ('B', 0, 0), ('L', 0, 0), ('ML', 1, 1), ('ML', 3, 2), ('E', 0, 0),
          ('C', 0, 0), ('T', 0, 0)], 'does not advance'),
        ([('S', 0, 0), ('N', 0, 0), ('B', 0, 0), ('G', 0, 0), ('MG', 2, 1), ('E', 0, 0), ('C', 0, 0),
          ('T', 0, 0)], 'glocal entry must be at node 1'),
        ([('S', 0, 0), ('N', 0, 0), ('B', 0, 0), ('G', 0, 0), ('MG', 1, 1), ('IG', 2, 2), ('MG', 3, 3),
          ('E', 0, 0), ('C', 0, 0), ('T', 0, 0)], 'insert node does not follow'),
        ([('S', 0, 0), ('N', 0, 0), ('B', 0, 0), ('L', 0, 0), ('ML', 1, 2), ('ML', 2, 1), ('E', 0, 0),
          ('C', 0, 0), ('T', 0, 0)], 'does not increase'),
        ([('S', 0, 0), ('N', 0, 1), ('B', 0, 0), ('L', 0, 0), ('ML', 1, 2), ('E', 0, 0), ('C', 0, 0),
          ('T', 0, 0)], 'position on a nonemitting step'),
        ([('S', 0, 0), ('N', 0, 0), ('N', 0, 0), ('B', 0, 0), ('L', 0, 0), ('ML', 1, 1), ('E', 0, 0),
          ('C', 0, 0), ('T', 0, 0)], 'without a sequence position'),
        ([('S', 0, 0), ('N', 0, 0), ('B', 0, 0), ('L', 0, 0), ('ML', 3, 1), ('E', 0, 0), ('J', 0, 0),
          ('B', 0, 0), ('G', 0, 0), ('MG', 1, 2), ('E', 0, 0), ('C', 0, 0), ('T', 0, 0)], 'exits before node 3'),
    ])
    def test_malformed(self, build, steps, match):
        tr = build(steps)
        with pytest.raises(TraceValidationError, match=match):
            validate(tr)
        assert not is_valid(tr)

    def test_position_on_nonemitter(self, local_trace):
        local_trace.i[2] = 1
        with pytest.raises(TraceValidationError, match="step 2 \\(B"):
            validate(local_trace)

    def test_node_on_special_state(self, local_trace):
        local_trace.k[7] = 1
        with pytest.raises(TraceValidationError, match="node index on a special state"):
            validate(local_trace)

    def test_unknown_state(self, local_trace):
        local_trace.st[3] = 0
        with pytest.raises(TraceValidationError, match="unknown state type"):
            validate(local_trace)

    def test_sequence_longer_than_path(self, local_trace):
        with pytest.raises(TraceValidationError, match="sequence has length 3"):
            validate(local_trace, dsq=Alphabet.AMINO.digitize(b'ACD'))

    def test_sequence_shorter_than_path(self, local_trace):
        with pytest.raises(TraceValidationError, match="beyond sequence length 1"):
            validate(local_trace, dsq=Alphabet.AMINO.digitize(b'A'))

    def test_gap_emitted(self, local_trace):
        with pytest.raises(TraceValidationError, match="non-residue symbol '-'"):
            validate(local_trace, Alphabet.AMINO, Alphabet.AMINO.digitize(b'A-'))

    def test_posterior_out_of_range(self, build):
        tr = build([('S', 0, 0), ('N', 0, 0), ('B', 0, 0), ('L', 0, 0), ('ML', 1, 1, 1.5), ('E', 0, 0),
                    ('C', 0, 0), ('T', 0, 0)], with_pp=True)
        with pytest.raises(TraceValidationError, match="outside"):
            validate(tr)
