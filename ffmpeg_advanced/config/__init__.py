"""
Configuration package.

- common.py: user paths loaded from `config.user.yaml`, logger format, default
  item field names, temp file kinds and report filenames.
- operations.py: allowed values and defaults for every operation parameter.
"""
