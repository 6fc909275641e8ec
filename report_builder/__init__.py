"""
GSC Report Builder

Composes tabular reports over Search Console query metrics:
1. Fetches clicks/impressions/CTR/position per time range
2. Reconciles rows by query across overlapping ranges
3. Annotates each query with a search intent via Claude
4. Lays the result out in user-arranged columns and exports CSV
"""

__version__ = "0.1.0"
