"""
FFmpeg Advanced: batch media operations compiled into FFmpeg invocations.

The usual entry point is `pipeline.batch_pipeline.BatchPipeline`, fed with
`domain.items.WorkItem`s and `domain.items.NodeParameters`; `main.py` at the
project root wraps it in a YAML-job command line.
"""
