"""
HSAT prep core: spaced-repetition scheduling, curriculum weighting and
attempt analytics.
"""
