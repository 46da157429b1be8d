"""
Parameter Grid Expansion

Turns temperature and top-p lists into the combinations to generate.
"""

from sampling_lab.domain.value_objects import ParameterCombination


def expand_grid(temperatures: list[float], top_ps: list[float]) -> list[ParameterCombination]:
    """
    Cartesian product of temperatures and top-p values, temperature-major

    Duplicated input values produce duplicated combinations. Both lists are
    expected to be non-empty; callers validate this.

    Args:
        temperatures: Temperature values (outer loop)
        top_ps: Top-p values (inner loop)

    Returns:
        list[ParameterCombination]: len(temperatures) * len(top_ps) combinations
    """
    return [
        ParameterCombination(temperature=temperature, top_p=top_p)
        for temperature in temperatures
        for top_p in top_ps
    ]
