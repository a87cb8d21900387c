"""
Configuration for the rebar cutting planner.

Values are read from the environment; a local .env file is loaded first.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# ============================================================
# PLANNER DEFAULTS
# ============================================================

# "ascending" = small bars first, "descending" = large bars first
DEFAULT_STOCK_ORDER = os.getenv("DEFAULT_STOCK_ORDER", "ascending")

# "scrap_dp" = scrap-minimizing DP, "weld_search" = weld-aware search
DEFAULT_STRATEGY = os.getenv("DEFAULT_STRATEGY", "scrap_dp")

# ============================================================
# COST MODEL
# ============================================================

# Cost per mm of scrap
COST_ALPHA = float(os.getenv("COST_ALPHA", "1"))

# Cost per weld
COST_BETA = float(os.getenv("COST_BETA", "500"))

# Minimum leftover length (mm) offered again as stock
COST_GAMMA = int(os.getenv("COST_GAMMA", "100"))

# Minimum segment length (mm) allowed in a weld
COST_DELTA = int(os.getenv("COST_DELTA", "100"))

# ============================================================
# WELD SEARCH LIMITS
# ============================================================

# Node expansions per bar before the search stops expanding
WELD_SEARCH_BUDGET = int(os.getenv("WELD_SEARCH_BUDGET", "20000"))

# Recursion depth cap (pieces per bar)
WELD_SEARCH_MAX_DEPTH = int(os.getenv("WELD_SEARCH_MAX_DEPTH", "200"))

# ============================================================
# SERVER / LOGGING
# ============================================================

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
RELOAD = os.getenv("RELOAD", "true").lower() == "true"
