"""CLI entry point: python -m sluice --app module:app routes"""
from sluice.cli import main

if __name__ == "__main__":
    main()
