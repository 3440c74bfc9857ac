"""Allow ``python -m perfsweep``."""

from perfsweep.cli import main

if __name__ == "__main__":
    main()
