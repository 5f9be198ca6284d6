"""Allow ``python -m ketch``."""

from ketch._cli import main

main()
