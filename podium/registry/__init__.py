"""Registry — the authoritative state machine for athletes and achievements.

The registry provides:
- Identity: one athlete profile per caller, ids assigned sequentially
- Achievements: append-only records per athlete
- Verification: one-way flags set by the registry owner
- Notifications: an ordered event stream of committed changes
"""
