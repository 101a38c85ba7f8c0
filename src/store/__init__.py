"""Storage and versioning layer.

This module persists immutable table revisions and branch heads.
It powers table loading, history, diffs, and remote pushes for the SDK.
"""
