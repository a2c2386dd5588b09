import sys

from localdrop.main import main

sys.exit(main())
