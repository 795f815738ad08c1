"""Package entry point for ``python -m taginfo_stream``."""

from taginfo_stream.cli import main

if __name__ == "__main__":
    main()
