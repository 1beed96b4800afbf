"""Template rendering, file mutation and Docker generation for generated projects."""
