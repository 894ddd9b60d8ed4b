"""reqtrace core: scanning, checks, configuration and the check runner."""
