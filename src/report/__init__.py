"""Diff reporting stage.

This module compares two table revisions row by row.
It renders change sets as text, JSON, or Markdown.
"""
