"""roadviz package initializer.

This package contains the data pipeline and plotting modules behind the
grammar-of-graphics walkthrough.  Modules include the page scraper,
header/value cleaning and joining, region lookup, plotting and output
helpers.  See individual module docstrings for details.
"""
