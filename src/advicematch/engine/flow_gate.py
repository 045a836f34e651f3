"""
advicematch Flow Gate

Hard exclusion of advice written for a different conversation flow.
Evaluated before any rule so a sell-side tip never reaches a buyer,
however well its rules score.
"""
from __future__ import annotations

from typing import Iterable, Optional


def flow_passes(flows: Optional[Iterable[str]], current_flow: str) -> bool:
    """
    Check whether an advice item's flows admit the visitor's flow.

    An empty or absent flow set admits every flow. Otherwise the current
    flow must be one of them (exact, case-sensitive match).

    Examples:
        flow_passes([], "buy") is True
        flow_passes(["sell"], "sell") is True
        flow_passes(["sell"], "buy") is False
    """
    if not flows:
        return True
    return current_flow in set(flows)
