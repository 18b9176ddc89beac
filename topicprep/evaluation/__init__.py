"""
Inspection utilities for prepared corpora.

This subpackage includes:
- output-size statistics for document-term matrices
- most-frequent-term tables.
"""
