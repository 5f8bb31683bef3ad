"""
Entry point for `python -m reposearch`.
"""

from .cli import main

if __name__ == "__main__":
    main()
