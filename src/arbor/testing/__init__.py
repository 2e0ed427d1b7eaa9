"""Test utilities for arbor APIs.

Provides an in-memory test client that dispatches requests straight to the
route tree::

    from arbor.testing import InMemoryTestClient
"""

from arbor.testing.client import InMemoryTestClient

__all__ = ["InMemoryTestClient"]
