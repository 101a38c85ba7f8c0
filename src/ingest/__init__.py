"""Table import stage.

This module applies exported delimited files to stored tables.
It commits one new revision per import that changes table content.
"""
