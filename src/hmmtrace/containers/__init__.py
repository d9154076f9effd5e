"""
Containers for profile tracebacks. Each trace stores its steps and domain index as parallel numpy arrays.
"""
