"""
Spin League

Tournament progression engine for head-to-head spinning-top battles: group
stage round-robins, single-elimination brackets, per-match finish scoring and
a cumulative cross-tournament league table.
"""

__version__ = "0.1.0"
__author__ = "Spin League Team"
__license__ = "MIT"
