"""Library circulation: book inventory and loan tracking.

Keeps book copy counts, loans and members in memory and replicates every
change to a line-oriented text file and a relational database.
"""

__version__ = "0.1.0"
