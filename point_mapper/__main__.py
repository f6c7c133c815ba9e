import sys

from point_mapper.cli import main

if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
