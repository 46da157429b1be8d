"""
Experiment Export

Converts experiments and aggregate results to JSON / CSV, and builds the
comparison table used by the CLI and the viewer.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pandas as pd

from sampling_lab.domain.constants import CSV_EXPORT_HEADERS
from sampling_lab.domain.entities import Experiment, Response
from sampling_lab.domain.errors import ValidationError
from sampling_lab.domain.value_objects import AggregateResult, MetricDetails

EXPORT_FORMATS = ("json", "csv")

COMPARISON_COLUMNS = [
    "temperature",
    "top_p",
    "coherence",
    "completeness",
    "structural",
    "overall",
    "word_count",
    "response_time_ms",
    "token_count",
    "id",
]


def to_iso(value: datetime) -> str:
    """UTC ISO-8601 timestamp with millisecond precision and a Z suffix"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _format_number(value: float) -> str:
    """Shortest number text (1.0 -> '1', 0.5 -> '0.5')"""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return repr(value)


def _csv_field(value: str) -> str:
    """Bare field, quoted only when it holds a delimiter, quote or line break"""
    if any(c in value for c in ',"\n\r'):
        escaped = value.replace('"', '""')
        return f'"{escaped}"'
    return value


def _details_to_dict(details: MetricDetails) -> dict:
    return {
        "wordCount": details.word_count,
        "sentenceCount": details.sentence_count,
        "avgSentenceLength": details.avg_sentence_length,
        "paragraphCount": details.paragraph_count,
        "punctuationDensity": details.punctuation_density,
        "lexicalDiversity": details.lexical_diversity,
    }


def response_to_dict(response: Response) -> dict:
    """JSON-ready representation of a response"""
    return {
        "id": response.id,
        "experimentId": response.experiment_id,
        "temperature": response.temperature,
        "topP": response.top_p,
        "model": response.model,
        "responseText": response.response_text,
        "metrics": {
            "coherence": response.metrics.coherence,
            "completeness": response.metrics.completeness,
            "structural": response.metrics.structural,
            "overall": response.metrics.overall,
            "details": _details_to_dict(response.metrics.details),
        },
        "responseTimeMs": response.response_time_ms,
        "tokenCount": response.token_count,
        "createdAt": to_iso(response.created_at),
    }


def experiment_to_dict(experiment: Experiment) -> dict:
    """JSON-ready representation of an experiment (responses included when loaded)"""
    data = {
        "id": experiment.id,
        "prompt": experiment.prompt,
        "createdAt": to_iso(experiment.created_at),
        "updatedAt": to_iso(experiment.updated_at),
    }
    if experiment.responses is not None:
        data["responses"] = [response_to_dict(r) for r in experiment.responses]
    return data


def aggregate_to_dict(result: AggregateResult) -> dict:
    """JSON-ready representation of an orchestrator result"""
    return {
        "experimentId": result.experiment_id,
        "responses": [response_to_dict(r) for r in result.responses],
        "metadata": {
            "totalGenerated": result.metadata.total_generated,
            "totalTimeMs": result.metadata.total_time_ms,
            "averageScore": result.metadata.average_score,
        },
        "failures": [
            {
                "temperature": f.combination.temperature,
                "topP": f.combination.top_p,
                "kind": f.kind,
                "reason": f.reason,
            }
            for f in result.failures
        ],
    }


def export_json(experiment: Experiment) -> str:
    """Export an experiment as a JSON document"""
    return json.dumps(experiment_to_dict(experiment), ensure_ascii=False, indent=2)


def export_csv(experiment: Experiment) -> str:
    """
    Export the responses of an experiment as CSV

    The response text is always quoted with embedded quotes doubled. ID and
    model are quoted only when they contain a comma, quote or line break;
    other fields are written bare. Rows are separated by '\\n' with no trailing newline.

    Args:
        experiment: Experiment with responses loaded

    Returns:
        CSV text
    """
    lines = [",".join(CSV_EXPORT_HEADERS)]
    for r in experiment.responses or []:
        escaped_text = r.response_text.replace('"', '""')
        lines.append(",".join([
            _csv_field(r.id),
            _format_number(r.temperature),
            _format_number(r.top_p),
            _csv_field(r.model),
            f'"{escaped_text}"',
            str(r.metrics.coherence),
            str(r.metrics.completeness),
            str(r.metrics.structural),
            str(r.metrics.overall),
            str(r.response_time_ms),
            str(r.token_count),
            to_iso(r.created_at),
        ]))
    return "\n".join(lines)


def export_experiment(experiment: Experiment, fmt: str = "json") -> str:
    """
    Export an experiment in the requested format

    Raises:
        ValidationError: If fmt is not json or csv
    """
    if fmt == "json":
        return export_json(experiment)
    if fmt == "csv":
        return export_csv(experiment)
    raise ValidationError(f"Unknown export format: {fmt} (available: {list(EXPORT_FORMATS)})")


def export_filename(experiment_id: str, fmt: str) -> str:
    """Download file name for an exported experiment"""
    return f"experiment-{experiment_id}.{fmt}"


def comparison_frame(responses: list[Response]) -> pd.DataFrame:
    """
    Build a comparison table of responses in grid order

    Args:
        responses: Responses in any order

    Returns:
        pd.DataFrame sorted by (temperature, top_p), one row per response
    """
    rows = [
        {
            "temperature": r.temperature,
            "top_p": r.top_p,
            "coherence": r.metrics.coherence,
            "completeness": r.metrics.completeness,
            "structural": r.metrics.structural,
            "overall": r.metrics.overall,
            "word_count": r.metrics.details.word_count,
            "response_time_ms": r.response_time_ms,
            "token_count": r.token_count,
            "id": r.id,
        }
        for r in responses
    ]
    df = pd.DataFrame(rows, columns=COMPARISON_COLUMNS)
    return df.sort_values(["temperature", "top_p"], kind="stable").reset_index(drop=True)


def best_response(responses: list[Response]) -> Response | None:
    """Response with the highest overall score (ties go to the earliest in grid order)"""
    if not responses:
        return None
    ordered = sorted(responses, key=lambda r: (r.temperature, r.top_p))
    return max(ordered, key=lambda r: r.metrics.overall)
