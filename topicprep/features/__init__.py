"""
Text normalization and document-term matrix construction.

This subpackage includes:
- text normalization and stopword handling
- vocabulary and sparse document-term matrix builders
- format adapters for external topic-model libraries
- a caller-owned artifact store and the end-to-end preparation pipeline.
"""
