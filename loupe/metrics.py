"""
Measurement and timing collection for the Loupe engine.

Rules evaluated during measure() record their metrics here. Per-rule timing
is only collected when explicitly enabled.
"""

from typing import Any, Dict

# Recorded measurements: rule_id -> {metric_name: value}
_measurements: Dict[str, Dict[str, Any]] = {}

# Per-rule timing data: rule_id -> {"total_ms": float, "call_count": int, "findings_count": int}
_rule_timing: Dict[str, Dict[str, Any]] = {}
_timing_enabled = False


def record_measurement(rule_id: str, name: str, value: Any) -> None:
    """Record a metric value for a rule, replacing any previous value."""
    _measurements.setdefault(rule_id, {})[name] = value


def get_measurements() -> Dict[str, Dict[str, Any]]:
    """Get a copy of all recorded measurements."""
    return {rule_id: dict(values) for rule_id, values in _measurements.items()}


def clear_measurements() -> None:
    """Clear recorded measurements."""
    _measurements.clear()


def enable_rule_timing():
    """Enable per-rule timing collection."""
    global _timing_enabled
    _timing_enabled = True


def disable_rule_timing():
    """Disable per-rule timing collection."""
    global _timing_enabled
    _timing_enabled = False


def record_rule_timing(rule_id: str, elapsed_ms: float, findings_count: int) -> None:
    """Accumulate timing for one rule evaluation (no-op unless timing is enabled)."""
    if not _timing_enabled:
        return
    if rule_id not in _rule_timing:
        _rule_timing[rule_id] = {
            "total_ms": 0.0,
            "call_count": 0,
            "findings_count": 0
        }
    _rule_timing[rule_id]["total_ms"] += elapsed_ms
    _rule_timing[rule_id]["call_count"] += 1
    _rule_timing[rule_id]["findings_count"] += findings_count


def get_rule_timing() -> Dict[str, Any]:
    """Get collected rule timing data."""
    return {rule_id: dict(data) for rule_id, data in _rule_timing.items()}


def clear_rule_timing():
    """Clear collected rule timing data."""
    _rule_timing.clear()
