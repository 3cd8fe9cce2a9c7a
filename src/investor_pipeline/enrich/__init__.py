"""Enrichment and filtering of pipeline-created directory records.

Separates venture funds from look-alike fund types with a curated rule
table, applies operator-curated data and prunes records too thin to keep.
"""
