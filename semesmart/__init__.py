"""
SemeSmart - Source Package

A family finance tracker: members, transactions, savings goals,
challenges and cards, with AI spending tips.

DESIGN PRINCIPLES:
1. One document per family, always read and written whole
2. Every change is a pure update, persisted, then adopted from the server echo
3. Fail early, fail visibly - typed errors scoped to one operation
4. Only redacted data ever reaches the AI
5. Storage and identity backends are swappable
"""

__version__ = "1.0.0"
__author__ = "SemeSmart Team"
