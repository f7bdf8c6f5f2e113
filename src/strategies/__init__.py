"""
Strategy registry: name -> Strategy subclass, for the CLI and config.
"""

from cta_core.strategy import Strategy
from strategies.ema_cross import EmaCrossStrategy

STRATEGIES: dict[str, type[Strategy]] = {
    EmaCrossStrategy.name: EmaCrossStrategy,
}


def get_strategy(name: str) -> type[Strategy]:
    """Look up a registered strategy class; raises KeyError for unknown names."""
    try:
        return STRATEGIES[name]
    except KeyError:
        raise KeyError(f"Unknown strategy {name!r}; available: {', '.join(sorted(STRATEGIES))}") from None


__all__ = ["STRATEGIES", "EmaCrossStrategy", "get_strategy"]
