"""Plain-text rendering of client results for the CLI."""

import json

from namaste_explorer.models import ApiStats, HealthStatus, NamasteSearchResult

EXCELLENT_MS = 100
GOOD_MS = 500
HIGH_CONFIDENCE = 0.8
MEDIUM_CONFIDENCE = 0.5
TOP_ENDPOINTS = 10
ENDPOINT_LABEL_WIDTH = 20


def format_uptime(seconds: float) -> str:
    """Format uptime as '2h 5m', '5m 3s' or '42s'."""
    seconds = int(seconds)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def performance_buckets(times: list[float]) -> dict[str, int]:
    """Count response times per speed band."""
    return {
        "Excellent (<100ms)": sum(1 for t in times if t < EXCELLENT_MS),
        "Good (100-500ms)": sum(1 for t in times if EXCELLENT_MS <= t < GOOD_MS),
        "Slow (>500ms)": sum(1 for t in times if t >= GOOD_MS),
    }


def top_endpoints(counts: dict[str, int], limit: int = TOP_ENDPOINTS) -> list[tuple[str, int]]:
    """Busiest endpoints first, long paths shortened from the left."""
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)[:limit]
    return [(_shorten(path), count) for path, count in ranked]


def _shorten(path: str) -> str:
    if len(path) > ENDPOINT_LABEL_WIDTH:
        return "..." + path[-ENDPOINT_LABEL_WIDTH:]
    return path


def render_health(health: HealthStatus) -> list[str]:
    lines = [f"Status:  {health.status}"]
    if health.version:
        lines.append(f"Version: {health.version}")
    if health.timestamp:
        lines.append(f"Checked: {health.timestamp}")
    for name, state in (health.services or {}).items():
        lines.append(f"  {name}: {state}")
    return lines


def render_stats(stats: ApiStats) -> list[str]:
    lines = [
        f"Total requests:  {stats.total_requests}",
        f"Success rate:    {stats.success_rate:.1f}%",
        f"Response time:   avg {stats.average_response_time:.0f} ms"
        f" (min {stats.min_response_time:.0f}, max {stats.max_response_time:.0f})",
        f"Uptime:          {format_uptime(stats.uptime_seconds)}",
    ]
    if stats.recent_response_times:
        lines.append("Recent performance:")
        for band, count in performance_buckets(stats.recent_response_times).items():
            lines.append(f"  {band}: {count}")
    if stats.endpoint_counts:
        lines.append("Top endpoints:")
        for path, count in top_endpoints(stats.endpoint_counts):
            lines.append(f"  {path}: {count}")
    if stats.status_code_distribution:
        codes = ", ".join(f"{code}={n}" for code, n in sorted(stats.status_code_distribution.items()))
        lines.append(f"Status codes:    {codes}")
    return lines


def render_search_result(result) -> str:
    """One line per normalized result, e.g. '[NAMASTE] A1  Fever [High 92%]'."""
    code = result.namaste_id if isinstance(result, NamasteSearchResult) else result.icd11_code
    line = f"[{result.source}] {code or '-'}  {result.term}"
    if result.term_hindi:
        line += f" / {result.term_hindi}"
    if result.confidence is not None:
        line += f" [{format_confidence(result.confidence)}]"
    return line


def confidence_band(score: float) -> str:
    if score >= HIGH_CONFIDENCE:
        return "High"
    if score >= MEDIUM_CONFIDENCE:
        return "Medium"
    return "Low"


def format_confidence(score: float) -> str:
    """'High 92%' style label for a 0.0-1.0 score."""
    return f"{confidence_band(score)} {score * 100:.0f}%"


def render_match_info(result: dict) -> list[str]:
    """Summarize the best ICD-11 match of a mapping result."""
    match = result.get("best_icd11_match") if isinstance(result, dict) else None
    if not isinstance(match, dict):
        match = {}
    if match.get("found"):
        code = match.get("code") or "N/A"
        title = match.get("title") or "N/A"
        confidence = _as_score(match.get("confidence_score"))
    else:
        code = "N/A"
        title = match.get("message") or "No match found"
        confidence = 0
    lines = [f"ICD-11 code: {code}", f"Title:       {title}", f"Confidence:  {format_confidence(confidence)}"]
    if isinstance(result, dict) and result.get("fhir_condition"):
        lines.append("FHIR Condition included (use --json to view)")
    return lines


def _as_score(value) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def render_json(data) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def render_session(request_count: int, average_ms: int) -> str:
    return f"Session: {request_count} request(s), avg {average_ms} ms"
