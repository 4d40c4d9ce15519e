"""
Main entry point for clever-deploy.

This module allows clever-deploy to be run as:
    python -m clever_deploy
"""

from .cli import main

if __name__ == "__main__":
    main()
