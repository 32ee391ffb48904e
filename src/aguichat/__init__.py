"""
AGUI Chat

Natural language chat and NL-to-SQL over pluggable model providers, with
responses normalized into structured AGUI envelopes and event streams.
"""

__version__ = "0.1.0"
