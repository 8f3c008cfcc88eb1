"""
Pipelines that drive a whole batch.

`BatchPipeline` runs the per-item lifecycle with error isolation;
`ConcatenationController` takes over a batch that is concatenated as one unit.
"""
