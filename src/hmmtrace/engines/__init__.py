"""
Operations over finished traces: validation, scoring, comparison, construction from alignments and counting.
"""
