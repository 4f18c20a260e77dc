import sys

from praxis_engine.cli import main

sys.exit(main())
