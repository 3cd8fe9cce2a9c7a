"""Verification helpers.

Classifies discovered candidates (type, stages, cheque size, geography),
scores their confidence and checks them against the existing directory.
"""
