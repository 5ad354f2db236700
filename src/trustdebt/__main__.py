"""Entry point for running Trust Debt as a module.

Usage:
    python -m trustdebt [command] [options]

Example:
    python -m trustdebt analyze --since 30 --threshold 500
    python -m trustdebt categories --suggest
"""

from trustdebt.cli import app

if __name__ == "__main__":
    app()
