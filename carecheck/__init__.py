"""carecheck: credential verification pipeline for childcare-worker candidates.

Reconciles an identity document check and a Working With Children Check
(WWCC) into a single authoritative verification status.
"""

__version__ = "0.1.0"
