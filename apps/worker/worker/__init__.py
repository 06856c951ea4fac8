"""
Pitchside Worker Service
========================

Background job runner for:
- Demo data ingestion
- Standings and player stat rebuilds
- Match finalization
- Session cleanup
"""

__version__ = "1.0.0"
