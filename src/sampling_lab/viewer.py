"""
sampling-lab Experiment Viewer

Minimal Streamlit dashboard for comparing the responses of saved experiments.
Displays quality scores per parameter combination, a comparison table, the
response texts, and export downloads.

Usage:
    pip install -e ".[viewer]"
    streamlit run src/sampling_lab/viewer.py
    streamlit run src/sampling_lab/viewer.py -- --storage-dir results

Requires the package to be installed (e.g. via ``pip install -e .``).
"""

from __future__ import annotations

import argparse

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from sampling_lab.domain.entities import Experiment
from sampling_lab.infrastructure.storage import CsvStorage
from sampling_lab.use_cases.export import (
    best_response,
    comparison_frame,
    export_csv,
    export_filename,
    export_json,
    to_iso,
)

# -- Colors --
METRIC_COLORS = {
    "coherence": "#1a73e8",
    "completeness": "#34a853",
    "structural": "#e8710a",
    "overall": "#9334e6",
}


def _combination_label(temperature: float, top_p: float) -> str:
    return f"T={temperature} / P={top_p}"


def _experiment_label(experiment: Experiment) -> str:
    prompt = experiment.prompt if len(experiment.prompt) <= 50 else experiment.prompt[:47] + "..."
    return f"{to_iso(experiment.created_at)[:16]}  {prompt}"


def _render_metrics_chart(df: pd.DataFrame) -> None:
    """Render grouped bars of the four scores per parameter combination."""
    st.header("Quality Scores")

    labels = [_combination_label(t, p) for t, p in zip(df["temperature"], df["top_p"])]
    fig = go.Figure()
    for metric, color in METRIC_COLORS.items():
        fig.add_trace(go.Bar(
            x=labels,
            y=df[metric],
            name=metric.capitalize(),
            marker_color=color,
        ))

    fig.update_layout(
        barmode="group",
        xaxis_title="Parameter combination",
        yaxis_title="Score",
        yaxis_range=[0, 100],
        legend_title="Metric",
        template="plotly_white",
        height=450,
    )

    st.plotly_chart(fig, use_container_width=True)


def _render_comparison_table(df: pd.DataFrame) -> None:
    """Render the comparison table in grid order."""
    st.header("Comparison")
    display = df.drop(columns=["id"]).rename(columns={
        "temperature": "Temperature",
        "top_p": "Top P",
        "coherence": "Coherence",
        "completeness": "Completeness",
        "structural": "Structural",
        "overall": "Overall",
        "word_count": "Words",
        "response_time_ms": "Time (ms)",
        "token_count": "Tokens",
    })
    st.dataframe(display, use_container_width=True, hide_index=True)


def _render_responses(experiment: Experiment) -> None:
    """Render each response text with its details."""
    st.header("Responses")
    best = best_response(experiment.responses or [])
    ordered = sorted(experiment.responses or [], key=lambda r: (r.temperature, r.top_p))
    for response in ordered:
        title = f"{_combination_label(response.temperature, response.top_p)} | overall {response.metrics.overall}"
        if best is not None and response.id == best.id:
            title += "  (best)"
        with st.expander(title):
            st.markdown(response.response_text)
            details = response.metrics.details
            st.caption(
                f"{details.word_count} words, {details.sentence_count} sentences, "
                f"{details.paragraph_count} paragraphs | "
                f"lexical diversity {details.lexical_diversity:.2f} | "
                f"punctuation density {details.punctuation_density:.2f} | "
                f"{response.response_time_ms}ms, ~{response.token_count} tokens"
            )


def _render_export(experiment: Experiment) -> None:
    """Render export download buttons."""
    st.sidebar.markdown("---")
    st.sidebar.download_button(
        "Export JSON",
        data=export_json(experiment),
        file_name=export_filename(experiment.id, "json"),
        mime="application/json",
    )
    st.sidebar.download_button(
        "Export CSV",
        data=export_csv(experiment),
        file_name=export_filename(experiment.id, "csv"),
        mime="text/csv",
    )


def main() -> None:
    # Parse --storage-dir from Streamlit args (after --)
    parser = argparse.ArgumentParser()
    parser.add_argument("--storage-dir", default="results")
    args, _ = parser.parse_known_args()

    storage = CsvStorage(args.storage_dir)

    st.set_page_config(page_title="sampling-lab", layout="wide")
    st.title("sampling-lab Experiments")

    experiments = storage.get_all_experiments()
    if not experiments:
        st.warning(f"No experiments found in `{args.storage_dir}/`")
        st.info("Run an experiment first:\n```\npython -m sampling_lab.runner run --prompt \"Explain quantum computing in simple terms\"\n```")
        return

    # Experiment selector (newest first)
    labels = {e.id: _experiment_label(e) for e in experiments}
    selected_id = st.sidebar.selectbox(
        "Experiment",
        options=list(labels),
        format_func=labels.get,
        index=0,
    )
    experiment = storage.get_experiment(selected_id)
    if experiment is None:
        st.error(f"Experiment not found: `{selected_id}`")
        return

    st.subheader("Prompt")
    st.write(experiment.prompt)

    responses = experiment.responses or []
    st.sidebar.markdown(f"**Responses**: {len(responses)}")

    if not responses:
        st.warning("This experiment has no successful responses.")
        return

    df = comparison_frame(responses)
    st.sidebar.markdown(f"**Average overall**: {df['overall'].mean():.1f}")

    _render_metrics_chart(df)
    _render_comparison_table(df)
    _render_responses(experiment)
    _render_export(experiment)


if __name__ == "__main__":
    main()
