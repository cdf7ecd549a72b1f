"""Scoring primitives.

Contents
- ``bm25``: tokenizer, corpus statistics and the ``BM25Engine``
- ``similarity``: cosine, dot product and euclidean distance
- ``normalization``: MinMax / ZScore / None score normalization
"""
