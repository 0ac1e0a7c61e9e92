"""
Entry point for running the acceptance engine as a module.

Usage:
    python -m erlang_acceptance run --os-family RedHat
    python -m erlang_acceptance matrix --os-family Debian
    python -m erlang_acceptance validate --matrix custom_matrix.yaml
"""

from .api.cli import main

if __name__ == "__main__":
    main()
