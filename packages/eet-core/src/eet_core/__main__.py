"""Allow running eet as: python -m eet_core"""

from eet_core.cli.main import main

main()
