"""ShiftCheck signup backend: signed email-verification tokens and their HTTP surface."""

__version__ = "0.1.0"
