"""
Scoring sub-package

Provides text analysis and quality scoring logic.
"""

from sampling_lab.domain.value_objects import MetricDetails, QualityMetrics
from sampling_lab.scoring.quality import (
    calculate_all,
    calculate_coherence,
    calculate_completeness,
    calculate_overall,
    calculate_structural,
    extract_details,
    recompute_details,
)
from sampling_lab.scoring.text_analysis import (
    count_punctuation,
    extract_keywords,
    extract_words,
    round_half_up,
    split_paragraphs,
    split_sentences,
)

__all__ = [
    # value objects (re-exported from domain)
    "MetricDetails",
    "QualityMetrics",
    # quality scoring
    "calculate_all",
    "calculate_coherence",
    "calculate_completeness",
    "calculate_overall",
    "calculate_structural",
    "extract_details",
    "recompute_details",
    # text analysis
    "count_punctuation",
    "extract_keywords",
    "extract_words",
    "round_half_up",
    "split_paragraphs",
    "split_sentences",
]
