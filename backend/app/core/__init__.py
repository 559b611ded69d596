"""Analytics Core — pure report, funnel, journey and prompt logic over plain event records.

Invariants:
    - Nothing here touches the database or the network
    - Time-dependent functions take an explicit `now`; the clock is read only when it is omitted
    - Inputs are EventRecord lists and plain values; outputs are dicts ready for JSON

Design Decisions:
    - Services load rows and call into core; core never calls back (ADR: impureim sandwich)
"""
