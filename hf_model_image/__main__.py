"""Allow running as ``python -m hf_model_image``."""

from hf_model_image.cli import app

if __name__ == "__main__":
    app()
