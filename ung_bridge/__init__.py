"""
UNG Bridge - tool-mediation layer for the ung billing CLI

Serializes invocations of the external ung command-line tool, parses its
tabular text output into typed records, caches those records with TTL-based
invalidation, polls the active time-tracking session, and composes
presentation trees for client surfaces.
"""

__version__ = "0.1.0"
__author__ = "UNG Team"
