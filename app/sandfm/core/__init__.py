"""Core building blocks shared by the filesystem engine and the CLI."""
