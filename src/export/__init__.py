"""Table export stage.

This module reads ranges from tabular sources such as Google Sheets.
It writes neutral CSV files that the import stage consumes by path.
"""
