"""bizpipe — business-object service pipeline with optimistic concurrency."""

__version__ = "0.1.0"
