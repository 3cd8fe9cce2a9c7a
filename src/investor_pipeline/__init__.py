"""investor_pipeline package.

Discovers venture-capital investors from SEC Form D filings and reconciles
them with an existing investor directory.

Architecture:
- discover → verify → merge → enrich, each stage reading the JSON file the
  previous stage wrote
- Pydantic models validate every file contract
- Matching, scoring and filtering are pure functions; the stage runners own
  all file I/O
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
