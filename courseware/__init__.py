"""Course authoring backend with a parent-aware publication lifecycle."""
