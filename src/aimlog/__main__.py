"""
aimlog CLI Entry Point

Allows running the package as a module: python -m aimlog
"""

from aimlog.cli import main

if __name__ == "__main__":
    main()
