"""
Domain Constants

Centrally manages constants shared across scoring and orchestration.
"""

# Default generation model
DEFAULT_MODEL = "gpt-4o-mini"

# Maximum tokens requested per generation
DEFAULT_MAX_TOKENS = 1000

# Minimum prompt length accepted by the orchestrator
MIN_PROMPT_LENGTH = 10

# Expected parameter ranges (inclusive)
TEMPERATURE_RANGE = (0.0, 2.0)
TOP_P_RANGE = (0.0, 1.0)

# Default parameter grid
DEFAULT_TEMPERATURES = [0.1, 0.5, 0.9]
DEFAULT_TOP_PS = [0.5, 0.9, 1.0]

# Overall score weights (coherence matters most)
OVERALL_WEIGHTS = {
    "coherence": 0.4,
    "completeness": 0.35,
    "structural": 0.25,
}

# Score returned when a metric cannot be measured
BASELINE_SCORE = 50

# Transition words that earn the coherence bonus
TRANSITION_WORDS = [
    "however",
    "therefore",
    "furthermore",
    "additionally",
    "moreover",
    "consequently",
    "meanwhile",
    "nevertheless",
]

# Stop words removed before keyword coverage is measured
STOPWORDS = frozenset([
    "the", "is", "at", "which", "on", "and", "or", "but", "a", "an", "as", "are", "was", "were", "been", "be",
    "have", "has", "had", "do", "does", "did", "will", "would", "should", "could", "may", "might", "must", "can",
    "this", "that", "these", "those", "i", "you", "he", "she", "it", "we", "they", "what", "who", "where", "when",
    "why", "how", "all", "each", "every", "both", "few", "more", "most", "other", "some", "such", "no", "nor",
    "not", "only", "own", "same", "so", "than", "too", "very", "can", "will", "just", "don", "should", "now",
])

# Response length bands: (upper bound on word count, length score)
LENGTH_BANDS = [
    (30, 0.3),   # Too short
    (50, 0.6),   # Short
    (200, 1.0),  # Ideal
    (400, 0.8),  # Long
]
LENGTH_SCORE_TOO_LONG = 0.5

# Characters counted as punctuation for density and structure
PUNCTUATION_CHARS = ".!?,;:"

# Characters that indicate markdown formatting
MARKDOWN_CHARS = "*_`#[]"

# Column headers of the CSV export, in order
CSV_EXPORT_HEADERS = [
    "ID",
    "Temperature",
    "Top P",
    "Model",
    "Response Text",
    "Coherence Score",
    "Completeness Score",
    "Structural Score",
    "Overall Score",
    "Response Time (ms)",
    "Token Count",
    "Created At",
]
