# Backend/app/core/rate_limits_config.py
"""
Rate limiting configuration per action type.

All limits are per caller identity (first X-Forwarded-For address) and are
enforced with a fixed window: the counter resets at every window boundary.
"""

from typing import Dict, Tuple

# (limit, window_seconds)
RATE_LIMITS: Dict[str, Tuple[int, int]] = {
    "ai_insights": (5, 60),  # 5 insight requests per 60 seconds
}

# Key namespace per action, kept stable so existing counters stay valid.
RATE_LIMIT_PREFIXES: Dict[str, str] = {
    "ai_insights": "ai-insight",
}


def get_rate_limit(action: str) -> Tuple[int, int]:
    """
    Get rate limit configuration for an action.

    Raises:
        ValueError: If action is not configured
    """
    if action not in RATE_LIMITS:
        raise ValueError(f"Rate limit not configured for action: {action}")
    return RATE_LIMITS[action]


def get_rate_limit_prefix(action: str) -> str:
    return RATE_LIMIT_PREFIXES.get(action, action)
