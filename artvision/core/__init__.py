"""Core orchestration package.

Composition:
    - `session`: `StudioSession`, the per-user state holder and action dispatcher.
    - `state_types`: Image records and the status variant rendered by adapters.

Package import itself is side-effect free.
"""
