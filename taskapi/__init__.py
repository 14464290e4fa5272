"""Task records with automatic completion of stale tasks."""
