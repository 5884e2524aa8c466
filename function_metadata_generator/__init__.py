"""Build-time extraction of function binding metadata."""
