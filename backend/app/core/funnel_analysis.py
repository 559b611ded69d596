"""Funnel Analysis — sequential step completion per session.

Invariants:
    - Steps must be completed in order within one session; each event advances at most one step
    - pageview step: a pageview whose page contains the value
    - event step: an event whose type equals the value
    - click step: a click whose metadata text or target contains the value
    - users[i] <= users[i-1] for every step (monotone non-increasing)
    - dropOffRate and conversion rates are percentages with 1 decimal

Design Decisions:
    - Greedy single pass per session: O(events) and identical to checking each step prefix
"""

from app.core.aggregation import safe_rate
from app.core.domain_types import FunnelStepType
from app.core.event_record import EventRecord, group_by_session


def step_matches(step: dict, evt: EventRecord) -> bool:
    step_type = step.get("type")
    value = str(step.get("value", ""))
    if step_type == FunnelStepType.PAGEVIEW.value:
        return evt.event_type == "pageview" and value in (evt.page or "")
    if step_type == FunnelStepType.EVENT.value:
        return evt.event_type == value
    if step_type == FunnelStepType.CLICK.value:
        if evt.event_type != "click":
            return False
        text = str(evt.metadata.get("text") or "")
        target = str(evt.metadata.get("target") or "")
        return value in text or value in target
    return False


def steps_completed(session_events: list[EventRecord], steps: list[dict]) -> int:
    """How many leading steps this (chronological) session completed."""
    done = 0
    for evt in session_events:
        if done >= len(steps):
            break
        if step_matches(steps[done], evt):
            done += 1
    return done


def analyze_funnel(events: list[EventRecord], steps: list[dict]) -> dict:
    sessions = group_by_session(events)
    completed = [steps_completed(group, steps) for group in sessions.values()]

    results = []
    for idx, step in enumerate(steps):
        users = sum(1 for n in completed if n > idx)
        results.append({
            "name": step.get("name"),
            "type": step.get("type"),
            "value": step.get("value"),
            "users": users,
            "dropOff": 0,
            "dropOffRate": 0.0,
            "conversionRate": 0.0,
        })

    first = results[0]["users"] if results else 0
    for idx, row in enumerate(results):
        row["conversionRate"] = safe_rate(row["users"], first)
        if idx == 0:
            continue
        prev = results[idx - 1]["users"]
        row["dropOff"] = prev - row["users"]
        row["dropOffRate"] = safe_rate(prev - row["users"], prev)

    overall = 0.0
    if len(results) > 1 and first > 0:
        overall = safe_rate(results[-1]["users"], first)

    return {
        "totalSessions": len(sessions),
        "steps": results,
        "overallConversion": overall,
    }


def clean_funnel_steps(raw_steps) -> list[dict]:
    """Keep well-formed steps only: known type, non-empty value; name defaults to value."""
    valid_types = {t.value for t in FunnelStepType}
    steps = []
    for raw in raw_steps or []:
        if not isinstance(raw, dict):
            continue
        step_type = str(raw.get("type", "")).strip().lower()
        value = str(raw.get("value", "") or "").strip()
        if step_type not in valid_types or not value:
            continue
        name = str(raw.get("name") or value).strip()
        steps.append({"name": name, "type": step_type, "value": value})
    return steps
