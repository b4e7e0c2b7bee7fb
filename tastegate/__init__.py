"""
Taste Gate

A taste-genome driven content pipeline: behavioural signals evolve a
per-account taste profile, a conviction score is derived from it, an
approval gate blocks low-quality publishes, and an autonomous scheduler
posts approved content and feeds observed outcomes back into the genome.
"""

__version__ = "0.1.0"
