"""
Collaborators a trace is read against: alphabets, profiles, count models, alignments and the state grammar.
"""
