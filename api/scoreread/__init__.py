"""
ScoreRead practice scheduler and session service.
"""
