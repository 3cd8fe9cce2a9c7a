"""Discovery helpers (SEC full-text search and Form D documents).

These modules talk to SEC EDGAR through a throttled client, parse Form D
primary documents and turn fund filers into discovery candidates.
"""
