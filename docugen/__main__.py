"""Module entrypoint for running DocuGen as ``python -m docugen``."""

from __future__ import annotations

from docugen.cli import main


if __name__ == "__main__":
    main()
