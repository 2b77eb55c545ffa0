"""
Clobster - Prediction Market Strategy Core

Evaluates prediction-market snapshots against pluggable trading strategies
and gates every resulting signal through a risk-limit pipeline before it
is handed to an execution layer.
"""

__version__ = "0.1.0"
__author__ = "Clobster Team"
