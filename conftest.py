"""Test configuration for ensuring top-level module imports."""

import os
import sys

# 讓 `from models import ...` 這類根目錄 import 在測試中也能用
ROOT_DIR = os.path.abspath(os.path.dirname(__file__))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)
