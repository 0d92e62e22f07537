"""Entrypoint script for network training runs."""

from swarmprop.adapters.cli import main


if __name__ == "__main__":
    main()
