"""
Utility functions module.

Time Semantics:
- Session start times printed by the tool are authoritative
- Elapsed time is always recomputed from wall-clock now minus start,
  never accumulated from poll ticks
- Naive timestamps are interpreted in local time, matching the tool's output
"""
