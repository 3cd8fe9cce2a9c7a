"""Merge stage: applies verified records to the investor directory."""
