"""FitHouse: personal weight and calorie tracking.

The store (``fithouse.store``) owns the profile, daily logs and settings and
persists a full snapshot after every command. The metrics engine
(``fithouse.calculations``, ``fithouse.trajectory``, ``fithouse.reports``)
derives TDEE, daily deficits and the projected weight trajectory from that
state without modifying it.
"""

__version__ = "0.1.0"
