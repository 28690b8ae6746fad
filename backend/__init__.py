"""
HTTP surface for LogLens.
"""
