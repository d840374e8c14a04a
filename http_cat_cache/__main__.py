import sys

from http_cat_cache.cli import main

sys.exit(main())
