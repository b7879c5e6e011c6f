import sys

from rfs_server.main import main

sys.exit(main())
