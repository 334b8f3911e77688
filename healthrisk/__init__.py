"""
HealthRisk

Provincial disease surveillance statistics: identifier resolution,
fact-table location, case aggregation and province comparison
"""

__version__ = "1.0.0"
