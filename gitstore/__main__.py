"""Entry point for `python -m gitstore`."""

from gitstore.tool.gitstore import main

if __name__ == "__main__":
    main()
