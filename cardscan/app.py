"""Console entry point for the ``cardscan`` script and ``python -m cardscan.app``."""

from typing import List, Optional

from .cli import app


def main(argv: Optional[List[str]] = None):
    """Run the CLI; ``argv`` defaults to the process arguments."""
    app(args=argv, prog_name="cardscan")


if __name__ == "__main__":
    main()
