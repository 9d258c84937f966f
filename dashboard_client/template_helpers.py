#!/usr/bin/env python3
"""
Template Helpers for the delivery dashboard
"""

import re
import time

from jinja2 import Environment

_WORD_START = re.compile(r"\b\w")


def title_from_key(key):
    """Human title for a bare metric key: avg_delivery_time -> Avg Delivery Time."""
    return _WORD_START.sub(lambda m: m.group(0).upper(), str(key).replace("_", " "))


def format_number(value):
    """Render integral floats without a trailing .0."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_value(value):
    """Format a stat value for display."""
    if value is None or value == "":
        return "—"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return format_number(value)
    return str(value)


def trend_class(trend):
    if not trend:
        return ""
    return "positive" if trend > 0 else "negative"


def trend_icon(trend):
    if not trend:
        return ""
    return "↑" if trend > 0 else "↓"


def format_trend(trend):
    """Trend text such as '↑ 5%'; empty for zero or missing trend."""
    if not trend:
        return ""
    return f"{trend_icon(trend)} {format_number(abs(trend))}%"


def first_glyph(name):
    """Avatar glyph: first character of the display name."""
    return str(name or "")[:1]


def format_datetime(timestamp):
    """Format timestamp as full datetime string."""
    if not timestamp:
        return ""
    try:
        return time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(timestamp))
    except (TypeError, ValueError, OverflowError):
        return str(timestamp)


def setup_template_filters(env: Environment):
    """Setup all template filters in a Jinja2 environment."""
    env.filters['title_from_key'] = title_from_key
    env.filters['format_value'] = format_value
    env.filters['format_number'] = format_number
    env.filters['trend_class'] = trend_class
    env.filters['trend_icon'] = trend_icon
    env.filters['format_trend'] = format_trend
    env.filters['first_glyph'] = first_glyph
    env.filters['format_datetime'] = format_datetime
