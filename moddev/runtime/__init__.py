"""Build context, progress display and launch configurations."""
