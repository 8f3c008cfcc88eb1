"""
Services Package.

Each service does one step of an item's lifecycle:

- **plan_builder**: operation descriptor + input paths -> `CommandPlan`.
- **temp_service**: allocation and guaranteed cleanup of temp files.
- **execution_service**: runs FFmpeg and ffprobe (`ExecutionEngine`).
- **result_service**: turns an output file into an output item.
- **job_loader**: reads YAML jobs and writes results for the CLI.
- **logging_service**: the error log and the YAML run report.
"""
