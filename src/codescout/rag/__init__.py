"""codescout retrieval — search, candidate selection, orchestration."""
