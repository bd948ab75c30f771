"""
Dashboard analytics for graded call transcripts.

Usage:
    python -m callscore.analytics <command> [OPTIONS]

Modules:
    filters     - Query parameter validation and comparison-period math
    models      - Store rows, per-period indices, and aggregate dataclasses
    aggregator  - Pure aggregate computations over one retrieved dataset
    errors      - Error taxonomy mapped to HTTP status codes
    cli         - Click commands for inspecting a dashboard from a shell
"""
