"""
Output streams for traces.
"""
