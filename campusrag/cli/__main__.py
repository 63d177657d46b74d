"""Allow ``python -m campusrag.cli`` execution."""

from campusrag.cli.ingest import main

main()
