"""
Process-wide resources and optional dependency management.
"""
from functools import cached_property, lru_cache
from importlib import import_module
from pathlib import Path
from concurrent.futures import ThreadPoolExecutor
from numpy.random import default_rng
import atexit
import os
from typing import Callable


# Classes --------------------------------------------------------------------------------------------------------------
class Resources:
    """
    Manages global resources like the worker pool, random number generator and optional dependencies.

    Attributes:
        package (str): The package name.
    """
    def __init__(self) -> None:
        self.package = Path(__file__).parent.parent.name
        atexit.register(self._cleanup)

    @cached_property
    def rng(self):
        """Returns a default numpy random number generator."""
        return default_rng()

    @cached_property
    def available_cpus(self) -> int:
        """Returns the number of available CPUs."""
        try: return os.process_cpu_count()
        except AttributeError: return os.cpu_count()

    @cached_property
    def pool(self) -> ThreadPoolExecutor:
        """Returns a shared ThreadPoolExecutor, one trace buffer per worker."""
        return ThreadPoolExecutor(min(32, (self.available_cpus or 1) + 4))

    def _cleanup(self):
        """Shuts down the thread pool."""
        # Only if 'pool' was ever initialized
        if 'pool' in self.__dict__: self.pool.shutdown(wait=False, cancel_futures=True)

    @staticmethod
    @lru_cache(maxsize=None)
    def has_module(module_name: str) -> bool:
        """Checks if a python package is installed."""
        try:
            import_module(module_name)
            return True
        except ImportError: return False

    def __enter__(self): return self
    def __exit__(self, exc_type, exc_val, exc_tb): self._cleanup()


# Decorators -----------------------------------------------------------------------------------------------------------
def jit(signature_or_function=None, **options) -> Callable:
    """
    Conditional Numba JIT decorator.

    If 'numba' is installed (checked via RESOURCES), this applies `numba.jit`
    with the provided arguments. Otherwise, it returns the original function unmodified,
    ignoring any compilation options.

    Examples:
        >>> @jit  # Bare usage
        ... def func(): ...

        >>> @jit(nopython=True, cache=True)  # Configured usage
        ... def func(): ...
    """
    if not RESOURCES.has_module('numba'):
        if callable(signature_or_function): return signature_or_function  # Handle bare @jit
        def passthrough(func: Callable) -> Callable: return func  # Handle @jit(...)
        return passthrough
    from numba import jit as real_jit
    if callable(signature_or_function): return real_jit(signature_or_function)  # Handle bare @jit
    return real_jit(signature_or_function, **options)  # Handle @jit(...)


# Constants ------------------------------------------------------------------------------------------------------------
RESOURCES = Resources()
