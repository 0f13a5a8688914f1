"""
Entry point for running b24_contact_sync as a module.

Usage:
    python -m b24_contact_sync --help
    python -m b24_contact_sync sync --dry-run
    python -m b24_contact_sync normalize
"""

from b24_contact_sync.cli import cli

if __name__ == "__main__":
    cli()
