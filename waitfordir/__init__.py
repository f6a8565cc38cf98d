"""
waitfordir
==========

Blocks until one or more directories stop being empty, then exits.

Intended as a synchronization gate in automation pipelines: start it
against the output directories of an upstream step and it returns once
each of them has content, or fails on timeout.
"""

__version__ = "0.1.0"
