"""
Dagunzi: rules engine and computer opponents for Dalian Dagunzi.

Subpackages:
    game     - card model, trump ordering, scoring and the GameEngine
    tracker  - CardTracker opponent-modeling memory
    ai       - Easy, Medium and Hard (determinized rollout search) strategies
"""

__version__ = "0.1.0"
