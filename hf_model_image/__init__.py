"""HF Model Image - container images pre-loaded with Hugging Face models.

This package generates a multi-stage build descriptor for a list of
Hugging Face models, drives a container engine to build and verify the
image, and pushes the result to a registry.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
