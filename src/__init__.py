"""
Business Intelligence Aggregator

Given a company domain:
1. Collects firmographics (Apollo.io), SEO metrics (DataForSEO) and
   technology stack (Wappalyzer) concurrently
2. Caches the merged result to control paid API spend
3. Scores data quality
4. Detects service opportunities for a client account
"""

__version__ = "0.1.0"
