"""
Acquisition pipeline: pacing, fetching, block detection and extraction.
"""
