# stretchkit/cli/__init__.py

"""
Command-line interface for stretchkit (Click).
"""
