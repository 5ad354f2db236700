"""Trust Debt - measure drift between documented intent and implementation reality.

Trust Debt compares what a project's documentation promises (Intent) with what
its commit history shows being built (Reality), category by category, and
condenses the mismatch into a single graded score that CI pipelines can gate on.

Core principles:
- Deterministic: every matrix cell is derived from keyword similarity, never sampled
- Explicit calibration: discount, health divisor and grade table are configuration
- Best-effort results: missing documents or weak category pairs become warnings
- Typed failures: configuration and scoring bugs abort with a single typed error
"""

__version__ = "0.1.0"
__author__ = "Trust Debt Contributors"
