"""
Intake - multi-step request flow for a home-services marketplace.

Two cores:
- Step/field state machine: schema-driven validation, persisted prefill, submit pipeline
- Availability matching: provider hour slots → per-daypart satisfiability, tiered ranking
"""

__version__ = "1.0.0"
