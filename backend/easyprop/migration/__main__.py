import sys

from easyprop.migration.cli import main

sys.exit(main())
