"""
costwatch: cost-of-living price acquisition pipeline.
"""

__version__ = "0.1.0"
