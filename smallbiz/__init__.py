"""
SmallBiz BookKeeping - Source Package

A small-business bookkeeping tool: income/expense transactions kept in
local storage, dashboards and tax reports, and a device-bound license gate.

DESIGN PRINCIPLES:
1. All state lives locally (no server, no sync)
2. Reports are pure functions over the transaction list
3. The license gate is a UX gate, not a security boundary
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "SmallBiz BookKeeping Team"
