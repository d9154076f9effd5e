"""
Profile HMM tracebacks: storage, construction, validation, scoring, comparison and counting of the state path that
aligns one sequence to a profile.
"""
from hmmtrace.core.alphabet import Alphabet, AlphabetError
from hmmtrace.core.hmm import HMM, Tcount
from hmmtrace.core.msa import MSA, MSAError
from hmmtrace.core.profile import Profile, ProfileError, Tsc, Xsc, Move
from hmmtrace.core.states import StateType, LEGAL_TRANSITIONS
from hmmtrace.containers.trace import (Trace, Step, Domain, TraceError, TraceFormatError,
                                       TraceAllocationError)
from hmmtrace.engines.validate import validate, is_valid, TraceValidationError
from hmmtrace.engines.score import (score, score_kahan, score_backwards, score_domain, expected_accuracy,
                                    check_consistency, score_batch, HmmTraceWarning, NumericInconsistencyWarning)
from hmmtrace.engines.compare import compare, compare_loosely, assert_traces_equal
from hmmtrace.engines.faux import faux_from_msa, doctor, FauxFlags
from hmmtrace.engines.count import count
from hmmtrace.lib.resources import RESOURCES

__version__ = '0.1.0'
