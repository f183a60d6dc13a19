"""
narrative.py — Template-based text for correlation summaries.

Turns the strongest correlation pairs into short readable sentences.
Plain f-string templates, no external text generation.
"""

from typing import Any, Dict, List


def _join_labels(labels: List[str]) -> str:
    if not labels:
        return ""
    if len(labels) == 1:
        return labels[0]
    if len(labels) == 2:
        return f"{labels[0]} and {labels[1]}"
    return ", ".join(labels[:-1]) + f", and {labels[-1]}"


def narrate_trend_intro(labels: List[str]) -> str:
    return f"The general trend between {_join_labels(labels)} seems to be that"


def narrate_positive_pair(pair: Dict[str, Any]) -> str:
    return (
        f"- {pair['name_a']} and {pair['name_b']} are highly positively correlated, "
        f"with a correlation coefficient of {pair['coefficient']:.2f}"
    )


def narrate_negative_pair(pair: Dict[str, Any]) -> str:
    return (
        f"- {pair['name_a']} and {pair['name_b']} are highly negatively correlated, "
        f"with a correlation coefficient of {pair['coefficient']:.2f}"
    )


def narrate_no_positive(threshold: float) -> str:
    return f"- There doesn't seem to be any notable positive correlations (r > {threshold:g})."


def narrate_no_negative(threshold: float) -> str:
    return f"- There doesn't seem to be any notable negative correlations (r < -{threshold:g})."


def narrate_correlation_summary(
    labels: List[str],
    positive: List[Dict[str, Any]],
    negative: List[Dict[str, Any]],
    threshold: float,
) -> List[str]:
    """Full summary as a list of lines, positives first."""
    lines: List[str] = []
    if positive:
        lines.append(narrate_trend_intro(labels))
        lines.extend(narrate_positive_pair(p) for p in positive)
    else:
        lines.append(narrate_no_positive(threshold))

    if negative:
        lines.append("Meanwhile,")
        lines.extend(narrate_negative_pair(p) for p in negative)
    else:
        lines.append(narrate_no_negative(threshold))
    return lines
