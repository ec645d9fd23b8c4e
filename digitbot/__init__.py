"""
digitbot - Binary Options Trading Execution Engine

Runs unattended sequences of fixed-duration binary-option trades against a
broker. A session controller drives a strategy chosen by contract type, with
stake sizing, a 1-3-2-6 recovery sequence, payout-table lookups and
circuit breakers supplied by a risk manager.
"""

__version__ = "0.1.0"
__author__ = "digitbot Team"
