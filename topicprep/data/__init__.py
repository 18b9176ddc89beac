"""
Data loading and corpus utilities.

This subpackage provides:
- Document / Corpus containers with identifier validation
- functions to load a tabular corpus (id + text columns) from CSV
  according to config/data.yaml.
"""
