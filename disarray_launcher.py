"""Top-level script for frozen (PyInstaller) builds of Disarray.

Frozen builds need a script without package-relative imports, so this file
only hands off to ``disarray.main.main``.
"""

from disarray.main import main

if __name__ == "__main__":
    main()
