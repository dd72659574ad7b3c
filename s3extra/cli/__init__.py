"""s3extra CLI — Typer-based local host for fileset resources.

Stands in for a declarative host: loads desired configuration, keeps
persisted state in a JSON file, and drives the lifecycle reconciler.

All output uses Rich for formatted terminal display.
"""
