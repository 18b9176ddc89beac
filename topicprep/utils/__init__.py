"""
Shared utility functions.

This subpackage includes:
- run configuration loading (config/run.yaml)
- path management
- lightweight logging helpers used across the project.
"""
