"""Artistic Vision Studio.

Architectural role:
    Re-stylizes a user photo with a hosted generative image model. An orchestrator
    (`core.session`) holds per-user state; adapters (`api.http_api`, `api.cli`)
    expose it over HTTP and the terminal.
"""
