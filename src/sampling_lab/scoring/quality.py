"""
Quality scoring

Derives coherence, completeness and structural scores (0-100) from raw text,
plus a weighted overall score and descriptive statistics.
"""

from __future__ import annotations

from sampling_lab.domain.constants import (
    BASELINE_SCORE,
    LENGTH_BANDS,
    LENGTH_SCORE_TOO_LONG,
    MARKDOWN_CHARS,
    OVERALL_WEIGHTS,
    TRANSITION_WORDS,
)
from sampling_lab.domain.value_objects import MetricDetails, QualityMetrics
from sampling_lab.scoring.text_analysis import (
    count_punctuation,
    extract_keywords,
    extract_words,
    round_half_up,
    split_paragraphs,
    split_sentences,
)

# Open band of punctuation-per-word ratios considered well punctuated
_PUNCTUATION_BAND = (0.05, 0.15)


def _clamp(score: int) -> int:
    return max(0, min(100, score))


def _jaccard(words_a: list[str], words_b: list[str]) -> float:
    """Jaccard similarity of two word lists using set semantics (0.0 for an empty union)"""
    set_a, set_b = set(words_a), set(words_b)
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def calculate_coherence(text: str) -> int:
    """
    Coherence score (0-100): topical continuity between adjacent sentences

    Averages word-set Jaccard similarity over adjacent sentence pairs and scales
    it by 80. Any transition word in the text adds a flat 20 points.

    Args:
        text: Response text

    Returns:
        Coherence score; 50 when there are fewer than two sentences
    """
    sentences = split_sentences(text)
    if len(sentences) < 2:
        return BASELINE_SCORE

    similarity_sum = 0.0
    for current, following in zip(sentences, sentences[1:]):
        similarity_sum += _jaccard(extract_words(current), extract_words(following))

    avg_similarity = similarity_sum / (len(sentences) - 1)

    lowered = text.lower()
    has_transitions = any(word in lowered for word in TRANSITION_WORDS)

    score = avg_similarity * 80
    if has_transitions:
        score += 20

    return _clamp(round_half_up(score))


def _length_score(word_count: int) -> float:
    for upper_bound, length_score in LENGTH_BANDS:
        if word_count < upper_bound:
            return length_score
    return LENGTH_SCORE_TOO_LONG


def calculate_completeness(response_text: str, prompt: str) -> int:
    """
    Completeness score (0-100): prompt keyword coverage and length appropriateness

    Coverage is the fraction of prompt keywords (each occurrence tested on its
    own) that also appear in the response. Length is scored by word count
    with 50-199 words as the ideal band.

    Args:
        response_text: Response text
        prompt: Original prompt

    Returns:
        Completeness score; 50 when the prompt has no keywords
    """
    prompt_keywords = extract_keywords(prompt)
    if not prompt_keywords:
        return BASELINE_SCORE

    response_keywords = set(extract_keywords(response_text))
    matched = sum(1 for word in prompt_keywords if word in response_keywords)
    coverage = matched / len(prompt_keywords)

    length_score = _length_score(len(extract_words(response_text)))

    score = (coverage * 0.6 + length_score * 0.4) * 100
    return _clamp(round_half_up(score))


def calculate_structural(text: str) -> int:
    """
    Structural score (0-100): formatting and organization quality

    Point budget:
    - Paragraphs: 30 for two or more, 15 for one
    - Sentence length variety: 25 / 15 / 5 by population variance
    - Punctuation density: 20 inside the 0.05-0.15 band, 10 otherwise (0 without words)
    - Markdown formatting characters: 25

    Args:
        text: Response text

    Returns:
        Structural score; 0 when there are no sentences
    """
    sentences = split_sentences(text)
    if not sentences:
        return 0

    score = 0

    paragraph_count = len(split_paragraphs(text))
    if paragraph_count >= 2:
        score += 30
    elif paragraph_count == 1:
        score += 15

    sentence_lengths = [len(extract_words(s)) for s in sentences]
    avg_length = sum(sentence_lengths) / len(sentence_lengths)
    variance = sum((length - avg_length) ** 2 for length in sentence_lengths) / len(sentence_lengths)

    if variance > 20:
        score += 25
    elif variance > 10:
        score += 15
    else:
        score += 5

    words = extract_words(text)
    if words:
        punctuation_ratio = count_punctuation(text) / len(words)
        low, high = _PUNCTUATION_BAND
        if low < punctuation_ratio < high:
            score += 20
        else:
            score += 10

    if any(char in MARKDOWN_CHARS for char in text):
        score += 25

    return min(100, score)


def calculate_overall(coherence: int, completeness: int, structural: int) -> int:
    """Weighted composite of the three sub-scores"""
    return round_half_up(
        coherence * OVERALL_WEIGHTS["coherence"]
        + completeness * OVERALL_WEIGHTS["completeness"]
        + structural * OVERALL_WEIGHTS["structural"]
    )


def extract_details(text: str) -> MetricDetails:
    """
    Descriptive statistics of a response text

    Args:
        text: Response text

    Returns:
        MetricDetails (ratios are 0.0 when there are no words)
    """
    words = extract_words(text)
    sentences = split_sentences(text)
    paragraphs = split_paragraphs(text)

    word_count = len(words)
    sentence_count = len(sentences)

    return MetricDetails(
        word_count=word_count,
        sentence_count=sentence_count,
        avg_sentence_length=round_half_up(word_count / sentence_count) if sentence_count else 0,
        paragraph_count=len(paragraphs),
        punctuation_density=count_punctuation(text) / word_count if word_count else 0.0,
        lexical_diversity=len(set(words)) / word_count if word_count else 0.0,
    )


def calculate_all(response_text: str, prompt: str) -> QualityMetrics:
    """
    Calculate all quality metrics for a response

    Args:
        response_text: Response text
        prompt: Original prompt

    Returns:
        QualityMetrics
    """
    coherence = calculate_coherence(response_text)
    completeness = calculate_completeness(response_text, prompt)
    structural = calculate_structural(response_text)

    return QualityMetrics(
        coherence=coherence,
        completeness=completeness,
        structural=structural,
        overall=calculate_overall(coherence, completeness, structural),
        details=extract_details(response_text),
    )


def recompute_details(response_text: str, prompt: str | None) -> MetricDetails:
    """
    Details for a stored response

    Details are derived data and are not persisted. When the prompt is known
    they are recomputed from the text; otherwise all-zero details are returned.
    Stored sub-scores are not revalidated against the recomputation.

    Args:
        response_text: Stored response text
        prompt: Prompt of the owning experiment, if available

    Returns:
        MetricDetails
    """
    if not prompt:
        return MetricDetails()
    return calculate_all(response_text, prompt).details
