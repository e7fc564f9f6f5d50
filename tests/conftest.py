import os
import sys

TESTS_DIR = os.path.dirname(__file__)

# backend/ modules and scripts/ CLIs are imported by bare name
sys.path.insert(0, os.path.join(TESTS_DIR, "..", "backend"))
sys.path.insert(0, os.path.join(TESTS_DIR, "..", "scripts"))

# section_factory is shared with tests in subdirectories
sys.path.insert(0, TESTS_DIR)
