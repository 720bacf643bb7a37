"""
Machine Learning modules for the matching engine.

Submodules:
- nlp: Text normalization and document extraction
"""
