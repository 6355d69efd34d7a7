import sys

from src.meeting_gateway.main import main

sys.exit(main())
