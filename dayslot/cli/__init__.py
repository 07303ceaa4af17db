"""
Command-line boundary layer.
"""
