"""Entry point for running ContextSmith as a module: python -m contextsmith.

This enables:
    python -m contextsmith plan "add a login page"
    python -m contextsmith assemble "add a login page" --symbols index.json
"""

from contextsmith.api.cli.main import main

if __name__ == "__main__":
    main()
