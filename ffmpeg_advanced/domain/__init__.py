"""
Domain models of the application, free of process execution and logging.

Modules:
    exceptions.py: The exception hierarchy every failure is reported through.
    items.py: Work items, binary payloads, the binary store seam and
              per-item parameter resolution.
    operations.py: The operation descriptors and their validation.
    plan.py: The immutable command plan and its typed filter graph.
    temp_models.py: The `TempFile` handle given out by the temp manager.
"""
