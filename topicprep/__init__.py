"""
Top-level package for the topic-model corpus preparation toolkit.

This package contains modules for:
- corpus loading and document identity checks
- text normalization and stopword handling
- vocabulary and document-term matrix construction
- format adapters for external topic-model libraries
- a caller-owned artifact store for prepared corpora
- output-size summaries and shared helper functions

The topic models themselves (LDA, CTM, STM, BTM, LSA, ...) live in
external libraries; everything here produces their inputs.
"""
