"""
Exceptions raised by the biomarker engine

Only malformed input is an error. Degenerate but valid data (zero power,
a missing channel pair, a sample rate too low for HFO detection) yields a
neutral result instead.
"""


class InvalidInputError(ValueError):
    """Raised for empty or mismatched signals, bad sample rates and unknown channels"""
