"""
sampling-lab

Fans a prompt out over a temperature x top-p grid, scores every response on
coherence, completeness and structure, and stores the results for comparison.
"""

__version__ = "0.1.0"
